from typing_extensions import Protocol
from domain.entities import InstallmentAgreement, Installment
from typing import Optional


class AgreementRepository(Protocol):
    async def save_agreement(self, agreement: InstallmentAgreement) -> InstallmentAgreement: ...
    async def get_agreement(self, agreement_id: str) -> Optional[InstallmentAgreement]: ...
    async def get_by_order_id(self, order_id: str) -> Optional[InstallmentAgreement]: ...
    async def get_by_customer_id(self, customer_id: str) -> list[InstallmentAgreement]: ...
    async def list_agreements(self, status: Optional[str] = None) -> list[InstallmentAgreement]: ...
    async def get_installment(self, installment_id: str) -> Optional[Installment]: ...
    async def update_agreement(
        self, agreement: InstallmentAgreement, installments: Optional[list[Installment]] = None
    ) -> InstallmentAgreement: ...
    async def update_installments(self, installments: list[Installment]) -> None: ...
