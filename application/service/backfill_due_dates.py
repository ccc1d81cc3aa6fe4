from typing import Optional

from domain.entities import Installment
from domain.exceptions import AgreementNotFoundError
from domain.interfaces import AgreementRepository, LoggingPort, bind_logger
from domain.services.jalali_calendar import get_installment_due_date_from_agreement


class BackfillDueDatesService:
    """Recomputes installment due dates from the agreement date (agreement date + n months)."""

    def __init__(self, agreement_repo: AgreementRepository, logging_port: Optional[LoggingPort] = None):
        self.agreement_repo = agreement_repo
        self.logging_port = logging_port

    async def execute(self, agreement_id: Optional[str] = None, request_id: Optional[str] = None) -> int:
        """
        Args:
            agreement_id: Limit to one agreement; all agreements when omitted

        Returns:
            Number of installments whose due date changed
        """
        log = bind_logger(self.logging_port, request_id=request_id or "unknown", step="due_date_backfill")

        if agreement_id:
            agreement = await self.agreement_repo.get_agreement(agreement_id)
            if agreement is None:
                raise AgreementNotFoundError(f"agreement {agreement_id} not found")
            agreements = [agreement]
        else:
            agreements = await self.agreement_repo.list_agreements()

        changed: list[Installment] = []
        for agreement in agreements:
            if not agreement.agreement_date:
                continue
            for inst in agreement.installments:
                due_date = get_installment_due_date_from_agreement(agreement.agreement_date, inst.installment_number)
                if due_date and due_date != inst.due_date:
                    inst.due_date = due_date
                    changed.append(inst)

        if changed:
            await self.agreement_repo.update_installments(changed)
        log.info("due_dates_backfilled", agreement_count=len(agreements), updated=len(changed))
        return len(changed)
