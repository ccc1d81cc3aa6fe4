from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class SmsEvent(Enum):
    ORDER_CREATED = "order_created"
    PAYMENT_CASH = "payment_cash"
    PAYMENT_INSTALLMENT = "payment_installment"
    MANUAL = "manual"


@dataclass
class SmsMessage:
    event: SmsEvent
    receptor: str
    message: str
    order_id: Optional[str] = None
    customer_id: Optional[str] = None
    customer_name: Optional[str] = None
    agreement_id: Optional[str] = None
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass
class SmsSendResult:
    success: bool
    status_text: str
    sender: Optional[str] = None
    provider_status: Optional[int] = None
    provider_message_id: Optional[str] = None
    cost: Optional[int] = None
    raw_response: Optional[str] = None
    attempts: int = 1
    sent_at: datetime = field(default_factory=datetime.now)
