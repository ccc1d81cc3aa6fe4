import time
from typing import Optional

from domain.entities import GuaranteeType, InstallmentAgreement
from domain.exceptions import AgreementStateError, InvalidAgreementTermsError
from domain.interfaces import AgreementRepository, LoggingPort, MetricsPort, bind_logger


class CreateAgreementService:
    def __init__(
        self,
        agreement_repo: AgreementRepository,
        metrics_port: Optional[MetricsPort] = None,
        logging_port: Optional[LoggingPort] = None
    ):
        """
        Initialize the agreement creation service.

        Args:
            agreement_repo: Repository for persisting agreements (required)
            metrics_port: Metrics port for emitting metrics (optional)
            logging_port: Logging port for structured logging (optional)
        """
        self.agreement_repo = agreement_repo
        self.metrics_port = metrics_port
        self.logging_port = logging_port

    async def execute(
        self,
        order_id: str,
        customer_id: str,
        total_amount: int,
        down_payment: int,
        number_of_installments: int,
        annual_rate: float,
        guarantee_type: GuaranteeType,
        agreement_date: str,
        created_by: str,
        request_id: Optional[str] = None,
    ) -> InstallmentAgreement:
        """
        Create an installment agreement for an order and persist it with all of
        its installments in one transaction.

        Raises:
            AgreementStateError: if the order already has an agreement
            InvalidAgreementTermsError: if the terms cannot produce a schedule
        """
        start_time = time.time()
        log = bind_logger(
            self.logging_port,
            request_id=request_id or "unknown",
            order_id=order_id,
            step="agreement_creation"
        )
        log.info(
            "agreement_creation_started",
            total_amount=total_amount,
            down_payment=down_payment,
            number_of_installments=number_of_installments,
            annual_rate=annual_rate
        )

        existing = await self.agreement_repo.get_by_order_id(order_id)
        if existing is not None:
            log.warning("agreement_already_exists", agreement_id=existing.id)
            raise AgreementStateError(f"order {order_id} already has an installment agreement")

        try:
            agreement = InstallmentAgreement.create(
                order_id=order_id,
                customer_id=customer_id,
                total_amount=total_amount,
                down_payment=down_payment,
                number_of_installments=number_of_installments,
                annual_rate=annual_rate,
                guarantee_type=guarantee_type,
                agreement_date=agreement_date,
                created_by=created_by,
            )
        except InvalidAgreementTermsError as e:
            log.warning("schedule_rejected", error=str(e))
            if self.metrics_port:
                self.metrics_port.increment_schedule_rejected()
            raise

        log.info("saving_agreement", step="db_persist", installment_count=len(agreement.installments))
        await self.agreement_repo.save_agreement(agreement)

        if self.metrics_port:
            self.metrics_port.increment_agreements_created(guarantee_type=guarantee_type.value)

        log.info(
            "agreement_created",
            agreement_id=agreement.id,
            installment_amount=agreement.installment_amount,
            total_payment=agreement.total_payment,
            duration_ms=round((time.time() - start_time) * 1000, 2)
        )
        return agreement
