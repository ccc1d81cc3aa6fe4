from typing import Optional

from domain.config import get_policy_config
from domain.exceptions import InvalidAgreementTermsError
from domain.interfaces import LoggingPort, MetricsPort, bind_logger
from domain.services import AmortizationSchedule, PaymentBasis, compute_amortization_schedule


class PreviewScheduleService:
    """Calculator preview: computes a schedule without persisting anything."""

    def __init__(self, metrics_port: Optional[MetricsPort] = None, logging_port: Optional[LoggingPort] = None):
        self.metrics_port = metrics_port
        self.logging_port = logging_port

    async def execute(
        self,
        total_amount: int,
        down_payment: int,
        number_of_installments: int,
        annual_rate: float,
        agreement_date: str,
        payment_basis: Optional[PaymentBasis] = None,
        request_id: Optional[str] = None,
    ) -> AmortizationSchedule:
        """
        Args:
            payment_basis: Rounded or unrounded split; defaults to INSTALLMENT_PREVIEW_BASIS

        Raises:
            InvalidAgreementTermsError: if the terms cannot produce a schedule
        """
        log = bind_logger(self.logging_port, request_id=request_id or "unknown", step="schedule_preview")
        basis = payment_basis or get_policy_config().get_preview_basis()

        schedule = compute_amortization_schedule(
            total_amount=total_amount,
            down_payment=down_payment,
            number_of_installments=number_of_installments,
            annual_rate=annual_rate,
            agreement_date=agreement_date,
            payment_basis=basis,
        )
        if schedule is None:
            log.warning(
                "schedule_rejected",
                total_amount=total_amount,
                down_payment=down_payment,
                number_of_installments=number_of_installments,
            )
            if self.metrics_port:
                self.metrics_port.increment_schedule_rejected()
            raise InvalidAgreementTermsError("مبلغ پیش‌پرداخت یا تعداد اقساط نامعتبر است")

        log.info(
            "schedule_previewed",
            payment_basis=basis.value,
            installment_amount=schedule.installment_amount,
            total_interest=schedule.total_interest,
        )
        return schedule
