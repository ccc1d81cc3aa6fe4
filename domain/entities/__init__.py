# import
from .installment import Installment, InstallmentStatus
from .agreement import InstallmentAgreement, AgreementStatus, GuaranteeType
from .sms import SmsEvent, SmsMessage, SmsSendResult

__all__ = [
    "Installment", "InstallmentStatus",
    "InstallmentAgreement", "AgreementStatus", "GuaranteeType",
    "SmsEvent", "SmsMessage", "SmsSendResult",
]
