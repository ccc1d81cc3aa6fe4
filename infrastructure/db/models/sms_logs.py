from datetime import datetime
from typing import Optional, Dict, Any
from uuid import uuid4
from sqlalchemy import Column, String, Integer, DateTime, Text
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import Mapped
from domain.entities import SmsMessage, SmsSendResult
from infrastructure.db.models.base import Base


class SmsLogModel(Base):
    """One row per SMS sent (or attempted) through the provider."""

    __tablename__ = "sms_log"

    id: Mapped[str] = Column(UUID(as_uuid=False), primary_key=True)
    event: Mapped[str] = Column(String, nullable=False)  # e.g., "payment_installment"
    message: Mapped[str] = Column(Text, nullable=False)
    receptor: Mapped[str] = Column(String, nullable=False)
    sender: Mapped[Optional[str]] = Column(String, nullable=True)
    status: Mapped[str] = Column(String, nullable=False)  # "success", "failed"
    attempts: Mapped[int] = Column(Integer, nullable=False, default=1)
    provider_status: Mapped[Optional[int]] = Column(Integer, nullable=True)
    provider_status_text: Mapped[Optional[str]] = Column(String, nullable=True)
    provider_message_id: Mapped[Optional[str]] = Column(String, nullable=True)
    cost: Mapped[Optional[int]] = Column(Integer, nullable=True)
    order_id: Mapped[Optional[str]] = Column(String, nullable=True, index=True)
    customer_id: Mapped[Optional[str]] = Column(String, nullable=True, index=True)
    customer_name: Mapped[Optional[str]] = Column(String, nullable=True)
    agreement_id: Mapped[Optional[str]] = Column(UUID(as_uuid=False), nullable=True)
    metadata_json: Mapped[Dict[str, Any]] = Column("metadata", JSONB, nullable=True)
    raw_response: Mapped[Optional[str]] = Column(Text, nullable=True)
    created_at: Mapped[datetime] = Column(DateTime(timezone=True), nullable=False)

    @classmethod
    def create(cls, sms: SmsMessage, result: SmsSendResult) -> "SmsLogModel":
        """Build a log record from the message and the provider result."""
        return cls(
            id=str(uuid4()),
            event=sms.event.value,
            message=sms.message,
            receptor=sms.receptor,
            sender=result.sender,
            status="success" if result.success else "failed",
            attempts=result.attempts,
            provider_status=result.provider_status,
            provider_status_text=result.status_text,
            provider_message_id=result.provider_message_id,
            cost=result.cost,
            order_id=sms.order_id,
            customer_id=sms.customer_id,
            customer_name=sms.customer_name,
            agreement_id=sms.agreement_id,
            metadata_json=dict(sms.metadata) if sms.metadata else None,
            raw_response=result.raw_response,
            created_at=result.sent_at,
        )
