from datetime import datetime
from typing import TYPE_CHECKING, Optional
from sqlalchemy import Column, String, Integer, BigInteger, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, relationship
from domain.entities.installment import Installment
from infrastructure.db.models.base import Base

if TYPE_CHECKING:
    from infrastructure.db.models.agreements import AgreementModel


class InstallmentModel(Base):
    __tablename__ = "installment"
    __table_args__ = (
        UniqueConstraint("agreement_id", "installment_number", name="uq_installment_agreement_number"),
    )

    id: Mapped[str] = Column(UUID(as_uuid=False), primary_key=True)
    agreement_id: Mapped[str] = Column(
        UUID(as_uuid=False), ForeignKey("installment_agreement.id"), nullable=False, index=True
    )
    installment_number: Mapped[int] = Column(Integer, nullable=False)
    due_date: Mapped[str] = Column(String(10), nullable=False)  # Jalali, ASCII digits
    installment_amount: Mapped[int] = Column(BigInteger, nullable=False)
    interest_amount: Mapped[int] = Column(BigInteger, nullable=False)
    principal_amount: Mapped[int] = Column(BigInteger, nullable=False)
    remaining_balance: Mapped[int] = Column(BigInteger, nullable=False)
    # Only the paid flag is stored; "overdue" is derived from due_date at read time
    is_paid: Mapped[bool] = Column(Boolean, nullable=False, default=False)
    paid_at: Mapped[Optional[datetime]] = Column(DateTime, nullable=True)
    paid_by: Mapped[Optional[str]] = Column(String, nullable=True)
    paid_amount: Mapped[Optional[int]] = Column(BigInteger, nullable=True)
    payment_date: Mapped[Optional[str]] = Column(String(10), nullable=True)
    notes: Mapped[Optional[str]] = Column(String, nullable=True)

    # Relationship back to agreement (many-to-one)
    agreement_rel: Mapped["AgreementModel"] = relationship(
        "AgreementModel",
        back_populates="installments_rel"
    )

    def to_domain(self) -> Installment:
        """Convert database model to domain entity."""
        return Installment(
            id=self.id,
            agreement_id=self.agreement_id,
            installment_number=self.installment_number,
            due_date=self.due_date,
            installment_amount=self.installment_amount,
            interest_amount=self.interest_amount,
            principal_amount=self.principal_amount,
            remaining_balance=self.remaining_balance,
            is_paid=bool(self.is_paid),
            paid_at=self.paid_at,
            paid_by=self.paid_by,
            paid_amount=self.paid_amount,
            payment_date=self.payment_date,
            notes=self.notes,
        )

    @classmethod
    def from_domain(cls, installment: Installment) -> "InstallmentModel":
        """Convert domain Installment entity to database model."""
        return cls(
            id=installment.id,
            agreement_id=installment.agreement_id,
            installment_number=installment.installment_number,
            due_date=installment.due_date,
            installment_amount=int(installment.installment_amount),
            interest_amount=int(installment.interest_amount),
            principal_amount=int(installment.principal_amount),
            remaining_balance=int(installment.remaining_balance),
            is_paid=installment.is_paid,
            paid_at=installment.paid_at,
            paid_by=installment.paid_by,
            paid_amount=installment.paid_amount,
            payment_date=installment.payment_date,
            notes=installment.notes,
        )

    def apply_changes(self, installment: Installment) -> None:
        """Copy the fields that may change after creation (payment and due date)."""
        self.due_date = installment.due_date
        self.is_paid = installment.is_paid
        self.paid_at = installment.paid_at
        self.paid_by = installment.paid_by
        self.paid_amount = installment.paid_amount
        self.payment_date = installment.payment_date
        self.notes = installment.notes
