from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import uuid4

from domain.services.jalali_calendar import parse_jalali_date_string, today_jalali


class InstallmentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"

    @property
    def label(self) -> str:
        return _INSTALLMENT_STATUS_LABELS[self]


_INSTALLMENT_STATUS_LABELS = {
    InstallmentStatus.PENDING: "در انتظار پرداخت",
    InstallmentStatus.PAID: "پرداخت شده",
    InstallmentStatus.OVERDUE: "سررسید گذشته",
}


@dataclass
class Installment:
    id: str
    agreement_id: str
    installment_number: int
    due_date: str
    installment_amount: int
    interest_amount: int
    principal_amount: int
    remaining_balance: int
    is_paid: bool = False
    paid_at: Optional[datetime] = None
    paid_by: Optional[str] = None
    paid_amount: Optional[int] = None
    payment_date: Optional[str] = None
    notes: Optional[str] = None

    @staticmethod
    def create(
        agreement_id: str,
        installment_number: int,
        due_date: str,
        installment_amount: int,
        interest_amount: int,
        principal_amount: int,
        remaining_balance: int,
    ) -> 'Installment':
        return Installment(
            id=str(uuid4()),
            agreement_id=agreement_id,
            installment_number=installment_number,
            due_date=due_date,
            installment_amount=installment_amount,
            interest_amount=interest_amount,
            principal_amount=principal_amount,
            remaining_balance=remaining_balance,
        )

    def status_on(self, today: Optional[str] = None) -> InstallmentStatus:
        """
        Display status derived from the paid flag and the due date.

        Only "paid" is stored; "overdue" is an unpaid installment whose
        Jalali due date is before today.
        """
        if self.is_paid:
            return InstallmentStatus.PAID
        due = parse_jalali_date_string(self.due_date)
        current = parse_jalali_date_string(today or today_jalali())
        if due is not None and current is not None and due < current:
            return InstallmentStatus.OVERDUE
        return InstallmentStatus.PENDING

    def mark_paid(
        self,
        paid_by: str,
        paid_amount: int,
        payment_date: str,
        paid_at: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> 'Installment':
        self.is_paid = True
        self.paid_by = paid_by
        self.paid_amount = paid_amount
        self.payment_date = payment_date
        self.paid_at = paid_at or datetime.now()
        self.notes = notes
        return self
