from datetime import datetime
from typing import TYPE_CHECKING, Optional
from sqlalchemy import Column, String, Integer, BigInteger, Float, DateTime
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, relationship
from domain.entities.agreement import InstallmentAgreement, AgreementStatus, GuaranteeType
from infrastructure.db.models.base import Base

if TYPE_CHECKING:
    from infrastructure.db.models.installments import InstallmentModel


class AgreementModel(Base):
    __tablename__ = "installment_agreement"

    id: Mapped[str] = Column(UUID(as_uuid=False), primary_key=True)
    order_id: Mapped[str] = Column(String, nullable=False, index=True, unique=True)
    customer_id: Mapped[str] = Column(String, nullable=False, index=True)
    total_amount: Mapped[int] = Column(BigInteger, nullable=False)
    down_payment: Mapped[int] = Column(BigInteger, nullable=False)
    principal_amount: Mapped[int] = Column(BigInteger, nullable=False)
    number_of_installments: Mapped[int] = Column(Integer, nullable=False)
    annual_rate: Mapped[float] = Column(Float, nullable=False)
    monthly_rate: Mapped[float] = Column(Float, nullable=False)  # percent
    installment_amount: Mapped[int] = Column(BigInteger, nullable=False)
    total_interest: Mapped[int] = Column(BigInteger, nullable=False)
    total_payment: Mapped[int] = Column(BigInteger, nullable=False)
    guarantee_type: Mapped[str] = Column(String, nullable=False)
    agreement_date: Mapped[str] = Column(String(10), nullable=False)  # Jalali, ASCII digits
    status: Mapped[str] = Column(String, nullable=False, index=True)
    created_by: Mapped[str] = Column(String, nullable=False)
    approved_by: Mapped[Optional[str]] = Column(String, nullable=True)
    created_at: Mapped[datetime] = Column(DateTime, nullable=False)
    updated_at: Mapped[datetime] = Column(DateTime, nullable=False)
    approved_at: Mapped[Optional[datetime]] = Column(DateTime, nullable=True)

    # Relationship to installments (one-to-many)
    installments_rel: Mapped[list["InstallmentModel"]] = relationship(
        "InstallmentModel",
        back_populates="agreement_rel",
        cascade="all, delete-orphan",
        order_by="InstallmentModel.installment_number",
        lazy="selectin"
    )

    def to_domain(self) -> InstallmentAgreement:
        """Convert database model to domain entity, installments included."""
        return InstallmentAgreement(
            id=self.id,
            order_id=self.order_id,
            customer_id=self.customer_id,
            total_amount=self.total_amount,
            down_payment=self.down_payment,
            principal_amount=self.principal_amount,
            number_of_installments=self.number_of_installments,
            annual_rate=self.annual_rate,
            monthly_rate=self.monthly_rate,
            installment_amount=self.installment_amount,
            total_interest=self.total_interest,
            total_payment=self.total_payment,
            guarantee_type=GuaranteeType(self.guarantee_type),
            agreement_date=self.agreement_date,
            status=AgreementStatus(self.status),
            created_by=self.created_by,
            approved_by=self.approved_by,
            created_at=self.created_at,
            updated_at=self.updated_at,
            approved_at=self.approved_at,
            installments=[inst.to_domain() for inst in (self.installments_rel or [])],
        )

    @classmethod
    def from_domain(cls, agreement: InstallmentAgreement) -> "AgreementModel":
        """Convert domain agreement to database model.

        Note: Installments are not set here. The repository adds them in the
        same transaction once the agreement is in the session.
        """
        return cls(
            id=agreement.id,
            order_id=agreement.order_id,
            customer_id=agreement.customer_id,
            total_amount=int(agreement.total_amount),
            down_payment=int(agreement.down_payment),
            principal_amount=int(agreement.principal_amount),
            number_of_installments=agreement.number_of_installments,
            annual_rate=agreement.annual_rate,
            monthly_rate=agreement.monthly_rate,
            installment_amount=int(agreement.installment_amount),
            total_interest=int(agreement.total_interest),
            total_payment=int(agreement.total_payment),
            guarantee_type=agreement.guarantee_type.value,
            agreement_date=agreement.agreement_date,
            status=agreement.status.value,
            created_by=agreement.created_by,
            approved_by=agreement.approved_by,
            created_at=agreement.created_at,
            updated_at=agreement.updated_at,
            approved_at=agreement.approved_at,
        )

    def apply_status(self, agreement: InstallmentAgreement) -> None:
        """Copy the mutable lifecycle fields from the domain entity."""
        self.status = agreement.status.value
        self.approved_by = agreement.approved_by
        self.approved_at = agreement.approved_at
        self.updated_at = agreement.updated_at
