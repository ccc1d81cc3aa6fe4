from typing_extensions import Protocol
from domain.entities import SmsMessage, SmsSendResult


class SmsPort(Protocol):
    """Protocol for sending customer SMS notifications."""

    async def send_sms(self, sms: SmsMessage, request_id: str | None = None) -> SmsSendResult:
        """
        Send an SMS and record the attempt.

        Args:
            sms: Message, receptor and the entities it refers to
            request_id: Optional request ID for tracing

        Returns:
            SmsSendResult; provider failures are reported with success=False
        """
        ...
