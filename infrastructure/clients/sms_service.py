"""
SMS service that sends notifications and records every attempt in the database.
"""
import time
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession

from domain.config import get_sms_config
from domain.entities import SmsMessage, SmsSendResult
from domain.exceptions import SmsProviderError
from domain.interfaces import MetricsPort
from infrastructure.clients.kavenegar_client import KavenegarClient
from infrastructure.db.models.sms_logs import SmsLogModel
from infrastructure.logging.structlog_logs import logger


class SmsService:
    """
    SmsPort implementation.

    This service:
    - Sends the message with KavenegarClient (retries handled by the client)
    - Records an sms_log row with the provider outcome
    - Never raises for provider failures: the caller gets success=False
    """

    def __init__(
        self,
        sms_client: KavenegarClient,
        db_session: Optional[AsyncSession] = None,
        metrics_port: Optional[MetricsPort] = None,
        enabled: Optional[bool] = None,
    ):
        """
        Initialize the SMS service.

        Args:
            sms_client: KavenegarClient instance
            db_session: Optional database session for recording sms_log rows
            metrics_port: Optional metrics port
            enabled: Override SMS_ENABLED from configuration
        """
        self.sms_client = sms_client
        self.db_session = db_session
        self.metrics_port = metrics_port
        self.enabled = get_sms_config().enabled if enabled is None else enabled

    async def send_sms(self, sms: SmsMessage, request_id: Optional[str] = None) -> SmsSendResult:
        """
        Send an SMS and record the attempt.

        Args:
            sms: Message to send
            request_id: Optional request ID for tracing

        Returns:
            SmsSendResult (success=False on provider or configuration failure)
        """
        log = logger.bind(
            request_id=request_id or "unknown",
            sms_event=sms.event.value,
            order_id=sms.order_id,
            agreement_id=sms.agreement_id,
            step="sms_service"
        )

        if not self.enabled:
            log.info("sms_disabled")
            return SmsSendResult(success=False, status_text="ارسال پیامک غیرفعال است", attempts=0)

        send_start = time.time()
        try:
            result = await self.sms_client.send(message=sms.message, receptor=sms.receptor)
        except SmsProviderError as e:
            log.error("sms_send_failed", error=str(e))
            result = SmsSendResult(
                success=False,
                status_text=str(e),
                sender=self.sms_client.sender,
                attempts=e.attempts,
            )
        duration_ms = (time.time() - send_start) * 1000

        log.info(
            "sms_sent" if result.success else "sms_rejected",
            success=result.success,
            provider_status=result.provider_status,
            status_text=result.status_text,
            attempts=result.attempts,
            duration_ms=round(duration_ms, 2)
        )

        if self.metrics_port:
            self.metrics_port.increment_sms_sent(event=sms.event.value, outcome="success" if result.success else "failed")

        if self.db_session:
            try:
                self.db_session.add(SmsLogModel.create(sms, result))
                await self.db_session.commit()
            except Exception as e:
                # The SMS already went out; a missing log row must not turn it into a failure
                log.error("sms_log_record_failed", error=str(e), error_type=type(e).__name__, exc_info=True)
                await self.db_session.rollback()

        return result
