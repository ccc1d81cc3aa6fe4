from typing import Optional

from domain.entities import InstallmentAgreement
from domain.exceptions import AgreementNotFoundError
from domain.interfaces import AgreementRepository, LoggingPort, bind_logger


class ApproveAgreementService:
    def __init__(self, agreement_repo: AgreementRepository, logging_port: Optional[LoggingPort] = None):
        self.agreement_repo = agreement_repo
        self.logging_port = logging_port

    async def execute(self, agreement_id: str, approved_by: str, request_id: Optional[str] = None) -> InstallmentAgreement:
        """
        Raises:
            AgreementNotFoundError: unknown agreement
            AgreementStateError: agreement is not pending
        """
        log = bind_logger(
            self.logging_port,
            request_id=request_id or "unknown",
            agreement_id=agreement_id,
            step="agreement_approval"
        )
        agreement = await self.agreement_repo.get_agreement(agreement_id)
        if agreement is None:
            raise AgreementNotFoundError(f"agreement {agreement_id} not found")

        agreement.approve(approved_by)
        await self.agreement_repo.update_agreement(agreement)
        log.info("agreement_approved", approved_by=approved_by)
        return agreement


class CancelAgreementService:
    def __init__(self, agreement_repo: AgreementRepository, logging_port: Optional[LoggingPort] = None):
        self.agreement_repo = agreement_repo
        self.logging_port = logging_port

    async def execute(self, agreement_id: str, request_id: Optional[str] = None) -> InstallmentAgreement:
        log = bind_logger(
            self.logging_port,
            request_id=request_id or "unknown",
            agreement_id=agreement_id,
            step="agreement_cancellation"
        )
        agreement = await self.agreement_repo.get_agreement(agreement_id)
        if agreement is None:
            raise AgreementNotFoundError(f"agreement {agreement_id} not found")

        previous_status = agreement.status
        agreement.cancel()
        await self.agreement_repo.update_agreement(agreement)
        log.info("agreement_cancelled", previous_status=previous_status.value)
        return agreement
