from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload
from domain.entities import InstallmentAgreement, Installment
from domain.exceptions import AgreementNotFoundError, AgreementStateError, InstallmentNotFoundError
from domain.interfaces import AgreementRepository
from infrastructure.db.models.agreements import AgreementModel
from infrastructure.db.models.installments import InstallmentModel


class AgreementRepoSqlalchemy(AgreementRepository):
    """SQLAlchemy implementation of AgreementRepository."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _agreement_query(self):
        return select(AgreementModel).options(selectinload(AgreementModel.installments_rel))

    async def save_agreement(self, agreement: InstallmentAgreement) -> InstallmentAgreement:
        """
        Save an agreement with all of its installments in one transaction.

        Either the agreement and every installment are committed, or nothing is.

        Raises:
            AgreementStateError: if the order already has an agreement (unique order_id)
        """
        agreement_model = AgreementModel.from_domain(agreement)
        try:
            self.db.add(agreement_model)
            await self.db.flush()  # agreement row must exist before the installment FKs

            for inst in agreement.installments:
                inst_model = InstallmentModel.from_domain(inst)
                inst_model.agreement_rel = agreement_model
                self.db.add(inst_model)

            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise AgreementStateError(f"order {agreement.order_id} already has an installment agreement") from e
        except Exception:
            await self.db.rollback()
            raise
        return agreement

    async def get_agreement(self, agreement_id: str) -> Optional[InstallmentAgreement]:
        """Get an agreement by ID with its installments loaded."""
        stmt = self._agreement_query().where(AgreementModel.id == agreement_id)
        result = await self.db.execute(stmt)
        agreement_model = result.scalar_one_or_none()
        return agreement_model.to_domain() if agreement_model else None

    async def get_by_order_id(self, order_id: str) -> Optional[InstallmentAgreement]:
        stmt = self._agreement_query().where(AgreementModel.order_id == order_id).limit(1)
        result = await self.db.execute(stmt)
        agreement_model = result.scalars().first()
        return agreement_model.to_domain() if agreement_model else None

    async def get_by_customer_id(self, customer_id: str) -> list[InstallmentAgreement]:
        """Agreements of a customer, newest first."""
        stmt = (
            self._agreement_query()
            .where(AgreementModel.customer_id == customer_id)
            .order_by(AgreementModel.created_at.desc())
        )
        result = await self.db.execute(stmt)
        return [model.to_domain() for model in result.scalars().all()]

    async def list_agreements(self, status: Optional[str] = None) -> list[InstallmentAgreement]:
        """All agreements (optionally of one status), newest first."""
        stmt = self._agreement_query().order_by(AgreementModel.created_at.desc())
        if status:
            stmt = stmt.where(AgreementModel.status == status)
        result = await self.db.execute(stmt)
        return [model.to_domain() for model in result.scalars().all()]

    async def get_installment(self, installment_id: str) -> Optional[Installment]:
        stmt = select(InstallmentModel).where(InstallmentModel.id == installment_id)
        result = await self.db.execute(stmt)
        inst_model = result.scalar_one_or_none()
        return inst_model.to_domain() if inst_model else None

    async def update_agreement(
        self,
        agreement: InstallmentAgreement,
        installments: Optional[list[Installment]] = None,
    ) -> InstallmentAgreement:
        """
        Persist lifecycle fields (status, approval) of an existing agreement.

        Installments passed along are written in the same commit.

        Raises:
            AgreementNotFoundError, InstallmentNotFoundError: nothing is written
        """
        try:
            agreement_model = await self.db.get(AgreementModel, agreement.id)
            if agreement_model is None:
                raise AgreementNotFoundError(f"agreement {agreement.id} not found")
            agreement_model.apply_status(agreement)
            await self._apply_installments(installments or [])
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return agreement

    async def update_installments(self, installments: list[Installment]) -> None:
        """Persist payment and due date fields of existing installments in one commit."""
        if not installments:
            return
        try:
            await self._apply_installments(installments)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

    async def _apply_installments(self, installments: list[Installment]) -> None:
        for inst in installments:
            inst_model = await self.db.get(InstallmentModel, inst.id)
            if inst_model is None:
                raise InstallmentNotFoundError(f"installment {inst.id} not found")
            inst_model.apply_changes(inst)
