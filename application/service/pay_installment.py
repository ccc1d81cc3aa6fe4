from typing import NamedTuple, Optional

from domain.entities import AgreementStatus, Installment, InstallmentAgreement
from domain.exceptions import (
    AgreementNotFoundError,
    AgreementStateError,
    InstallmentAlreadyPaidError,
    InstallmentNotFoundError,
    InsufficientPaymentError,
    InvalidDateError,
)
from domain.interfaces import AgreementRepository, LoggingPort, MetricsPort, bind_logger
from domain.services.jalali_calendar import parse_jalali_date_string, today_jalali


class InstallmentPayment(NamedTuple):
    installment: Installment
    agreement: InstallmentAgreement
    agreement_completed: bool


class PayInstallmentService:
    def __init__(
        self,
        agreement_repo: AgreementRepository,
        metrics_port: Optional[MetricsPort] = None,
        logging_port: Optional[LoggingPort] = None
    ):
        self.agreement_repo = agreement_repo
        self.metrics_port = metrics_port
        self.logging_port = logging_port

    async def execute(
        self,
        installment_id: str,
        paid_by: str,
        paid_amount: Optional[int] = None,
        payment_date: Optional[str] = None,
        notes: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> InstallmentPayment:
        """
        Record the payment of one installment.

        The installment and, when it was the last unpaid one, the agreement's
        move to "completed" are written in the same commit.

        Args:
            installment_id: Installment to pay
            paid_by: User recording the payment
            paid_amount: Amount received; defaults to the installment amount
            payment_date: Jalali payment date; defaults to today
            notes: Free text stored with the payment
            request_id: ID of the request for tracing (optional)

        Raises:
            InstallmentNotFoundError, AgreementNotFoundError,
            InstallmentAlreadyPaidError, InsufficientPaymentError,
            AgreementStateError (agreement is cancelled), InvalidDateError
        """
        log = bind_logger(
            self.logging_port,
            request_id=request_id or "unknown",
            installment_id=installment_id,
            step="installment_payment"
        )

        installment = await self.agreement_repo.get_installment(installment_id)
        if installment is None:
            raise InstallmentNotFoundError(f"installment {installment_id} not found")
        agreement = await self.agreement_repo.get_agreement(installment.agreement_id)
        if agreement is None:
            raise AgreementNotFoundError(f"agreement {installment.agreement_id} not found")
        if agreement.status is AgreementStatus.CANCELLED:
            raise AgreementStateError("cannot pay an installment of a cancelled agreement")

        # Work on the agreement's own copy so completion sees the new state
        installment = next((inst for inst in agreement.installments if inst.id == installment_id), installment)
        if installment.is_paid:
            raise InstallmentAlreadyPaidError(f"installment {installment_id} is already paid")

        amount = installment.installment_amount if paid_amount is None else paid_amount
        if amount < installment.installment_amount:
            log.warning("insufficient_payment", paid_amount=amount, installment_amount=installment.installment_amount)
            raise InsufficientPaymentError(
                f"paid amount {amount} is less than installment amount {installment.installment_amount}"
            )

        parsed_date = parse_jalali_date_string(payment_date or today_jalali())
        if parsed_date is None:
            raise InvalidDateError(f"invalid payment date: {payment_date!r}")

        installment.mark_paid(
            paid_by=paid_by,
            paid_amount=amount,
            payment_date=f"{parsed_date.year:04d}/{parsed_date.month:02d}/{parsed_date.day:02d}",
            notes=notes,
        )
        completed = agreement.complete_if_fully_paid()
        await self.agreement_repo.update_agreement(agreement, [installment])

        if self.metrics_port:
            self.metrics_port.increment_installments_paid()

        log.info(
            "installment_paid",
            agreement_id=agreement.id,
            installment_number=installment.installment_number,
            paid_amount=amount,
            agreement_completed=completed
        )
        return InstallmentPayment(installment=installment, agreement=agreement, agreement_completed=completed)
