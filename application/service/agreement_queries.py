from typing import NamedTuple, Optional

from domain.entities import AgreementStatus, Installment, InstallmentAgreement
from domain.exceptions import AgreementNotFoundError
from domain.interfaces import AgreementRepository
from domain.services.jalali_calendar import jalali_sort_key


class GetAgreementService:
    def __init__(self, agreement_repo: AgreementRepository):
        self.agreement_repo = agreement_repo

    async def execute(self, agreement_id: str) -> InstallmentAgreement:
        """Get an agreement by ID with its installments."""
        agreement = await self.agreement_repo.get_agreement(agreement_id)
        if agreement is None:
            raise AgreementNotFoundError(f"agreement {agreement_id} not found")
        return agreement


class GetOrderAgreementService:
    def __init__(self, agreement_repo: AgreementRepository):
        self.agreement_repo = agreement_repo

    async def execute(self, order_id: str) -> InstallmentAgreement:
        agreement = await self.agreement_repo.get_by_order_id(order_id)
        if agreement is None:
            raise AgreementNotFoundError(f"no installment agreement for order {order_id}")
        return agreement


class CustomerAgreementsService:
    def __init__(self, agreement_repo: AgreementRepository):
        self.agreement_repo = agreement_repo

    async def execute(self, customer_id: str) -> list[InstallmentAgreement]:
        return await self.agreement_repo.get_by_customer_id(customer_id)


class ListAgreementsService:
    def __init__(self, agreement_repo: AgreementRepository):
        self.agreement_repo = agreement_repo

    async def execute(self, status: Optional[AgreementStatus] = None) -> list[InstallmentAgreement]:
        return await self.agreement_repo.list_agreements(status=status.value if status else None)


class UnpaidInstallment(NamedTuple):
    order_id: str
    installment: Installment


class UnpaidInstallmentsService:
    def __init__(self, agreement_repo: AgreementRepository):
        self.agreement_repo = agreement_repo

    async def execute(self, customer_id: str) -> list[UnpaidInstallment]:
        """
        Unpaid installments across the customer's live agreements, ordered by due date.

        Cancelled agreements are skipped.
        """
        agreements = await self.agreement_repo.get_by_customer_id(customer_id)
        unpaid: list[UnpaidInstallment] = []
        for agreement in agreements:
            if agreement.status is AgreementStatus.CANCELLED:
                continue
            unpaid.extend(UnpaidInstallment(agreement.order_id, inst) for inst in agreement.unpaid_installments())
        return sorted(unpaid, key=lambda item: jalali_sort_key(item.installment.due_date))
