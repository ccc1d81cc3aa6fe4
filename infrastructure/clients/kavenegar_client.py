"""
Kavenegar SMS client.

Sends a single SMS through the Kavenegar REST API using httpx, retrying
network errors and 5xx responses with exponential backoff (tenacity).
Kavenegar expects the parameters in the query string, not in the body.
"""
import time
from typing import Any, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from domain.entities import SmsSendResult
from domain.exceptions import SmsProviderError
from infrastructure.logging.structlog_logs import logger
from infrastructure.metrics.metrics import sms_send_latency_seconds

DEFAULT_BASE_URL = "https://api.kavenegar.com/v1"
PROVIDER_OK_STATUS = 200


class KavenegarClient:
    """
    HTTP client for the Kavenegar "sms/send" endpoint.

    - max_retries: total attempts for network errors and 5xx responses
    - 4xx responses are not retried; they carry the provider's error status
    """

    def __init__(
        self,
        api_key: Optional[str],
        sender: Optional[str],
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        max_retries: int = 3,
        backoff_multiplier: float = 1.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the Kavenegar client.

        Args:
            api_key: Kavenegar API key (part of the URL path)
            sender: Default sender line number
            base_url: API base URL
            timeout: Request timeout in seconds
            max_retries: Total number of attempts
            backoff_multiplier: Exponential backoff multiplier in seconds (0 disables waiting)
            transport: Optional httpx transport (tests)
        """
        self.api_key = api_key
        self.sender = sender
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.backoff_multiplier = backoff_multiplier
        self._client = httpx.AsyncClient(timeout=httpx.Timeout(timeout), transport=transport)

    async def _post(self, url: str, params: dict[str, str]) -> httpx.Response:
        start_time = time.time()
        try:
            response = await self._client.post(url, params=params)
        finally:
            sms_send_latency_seconds.observe(time.time() - start_time)
        if response.status_code >= 500:
            response.raise_for_status()
        return response

    async def send(self, message: str, receptor: str, sender_override: Optional[str] = None) -> SmsSendResult:
        """
        Send one SMS.

        Returns:
            SmsSendResult parsed from the provider response

        Raises:
            SmsProviderError: if the client is not configured, or the provider could
                not be reached after all retries
        """
        if not self.api_key:
            raise SmsProviderError("کلید Kavenegar در محیط تنظیم نشده است")
        sender = sender_override or self.sender
        if not sender:
            raise SmsProviderError("شماره ارسال‌کننده Kavenegar در محیط تنظیم نشده است")

        url = f"{self.base_url}/{self.api_key}/sms/send.json"
        params = {"receptor": receptor, "sender": sender, "message": message}
        attempt_number = 0

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_retries),
                wait=wait_exponential(multiplier=self.backoff_multiplier, min=0, max=10),
                retry=retry_if_exception_type((httpx.RequestError, httpx.HTTPStatusError)),
                reraise=True,
            ):
                with attempt:
                    attempt_number = attempt.retry_state.attempt_number
                    if attempt_number > 1:
                        logger.warning("sms_send_retry", step="kavenegar_client", attempt=attempt_number)
                    response = await self._post(url, params)
        except httpx.TimeoutException as e:
            raise SmsProviderError(
                f"زمان اتصال به سرور Kavenegar به پایان رسید (after {attempt_number} attempts)",
                attempts=attempt_number,
            ) from e
        except (httpx.RequestError, httpx.HTTPStatusError) as e:
            raise SmsProviderError(f"خطا در ارتباط با Kavenegar: {e}", attempts=attempt_number) from e

        return self._parse_response(response, sender, attempt_number)

    @staticmethod
    def _parse_response(response: httpx.Response, sender: str, attempts: int) -> SmsSendResult:
        try:
            data: Any = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        status_block = data.get("return") or {}
        entries = data.get("entries")
        entry = entries[0] if isinstance(entries, list) and entries else {}
        success = status_block.get("status") == PROVIDER_OK_STATUS

        return SmsSendResult(
            success=success,
            status_text=entry.get("statustext") or status_block.get("message") or "نامشخص",
            sender=sender,
            provider_status=entry.get("status", status_block.get("status")),
            provider_message_id=str(entry["messageid"]) if entry.get("messageid") else None,
            cost=entry.get("cost"),
            raw_response=response.text,
            attempts=attempts,
        )

    async def close(self):
        """Close the httpx client."""
        await self._client.aclose()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
