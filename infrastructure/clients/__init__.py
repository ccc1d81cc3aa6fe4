from .kavenegar_client import KavenegarClient
from .sms_service import SmsService

__all__ = ["KavenegarClient", "SmsService"]
