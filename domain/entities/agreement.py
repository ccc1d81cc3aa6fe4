from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import uuid4

from domain.exceptions import AgreementStateError, InvalidAgreementTermsError
from domain.services.amortization import PaymentBasis, compute_amortization_schedule
from domain.services.jalali_calendar import jalali_sort_key, parse_jalali_date_string
from .installment import Installment


class AgreementStatus(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def label(self) -> str:
        return _AGREEMENT_STATUS_LABELS[self]


_AGREEMENT_STATUS_LABELS = {
    AgreementStatus.PENDING: "در انتظار پرداخت",
    AgreementStatus.APPROVED: "تایید شده",
    AgreementStatus.COMPLETED: "تکمیل شده",
    AgreementStatus.CANCELLED: "لغو شده",
}


class GuaranteeType(Enum):
    CHEQUE = "cheque"
    GOLD = "gold"

    @property
    def label(self) -> str:
        return "چک" if self is GuaranteeType.CHEQUE else "طلا"


@dataclass
class InstallmentAgreement:
    id: str
    order_id: str
    customer_id: str
    total_amount: int
    down_payment: int
    principal_amount: int
    number_of_installments: int
    annual_rate: float
    monthly_rate: float
    installment_amount: int
    total_interest: int
    total_payment: int
    guarantee_type: GuaranteeType
    agreement_date: str
    status: AgreementStatus
    created_by: str
    created_at: datetime
    updated_at: datetime
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    installments: list[Installment] = field(default_factory=list)

    @staticmethod
    def create(
        order_id: str,
        customer_id: str,
        total_amount: int,
        down_payment: int,
        number_of_installments: int,
        annual_rate: float,
        guarantee_type: GuaranteeType,
        agreement_date: str,
        created_by: str,
    ) -> 'InstallmentAgreement':
        """
        Build an agreement together with its complete installment schedule.

        Raises:
            InvalidAgreementTermsError: if the terms cannot produce a schedule
                or the agreement date is not a valid Jalali date
        """
        parsed_date = parse_jalali_date_string(agreement_date)
        if parsed_date is None:
            raise InvalidAgreementTermsError(f"invalid agreement date: {agreement_date!r}")
        # Stored with ASCII digits
        agreement_date = f"{parsed_date.year:04d}/{parsed_date.month:02d}/{parsed_date.day:02d}"

        schedule = compute_amortization_schedule(
            total_amount=total_amount,
            down_payment=down_payment,
            number_of_installments=number_of_installments,
            annual_rate=annual_rate,
            agreement_date=agreement_date,
            payment_basis=PaymentBasis.ROUNDED,
        )
        if schedule is None:
            raise InvalidAgreementTermsError(
                f"cannot build a schedule for total={total_amount} down_payment={down_payment} "
                f"installments={number_of_installments}"
            )

        now = datetime.now()
        agreement = InstallmentAgreement(
            id=str(uuid4()),
            order_id=order_id,
            customer_id=customer_id,
            total_amount=total_amount,
            down_payment=down_payment,
            principal_amount=schedule.principal_amount,
            number_of_installments=number_of_installments,
            annual_rate=annual_rate,
            monthly_rate=schedule.monthly_rate_percent,
            installment_amount=schedule.installment_amount,
            total_interest=schedule.total_interest,
            total_payment=schedule.total_payment,
            guarantee_type=guarantee_type,
            agreement_date=agreement_date,
            status=AgreementStatus.PENDING,
            created_by=created_by,
            created_at=now,
            updated_at=now,
        )
        agreement.installments = [
            Installment.create(
                agreement_id=agreement.id,
                installment_number=row.installment_number,
                due_date=row.due_date,
                installment_amount=row.installment_amount,
                interest_amount=row.interest_amount,
                principal_amount=row.principal_amount,
                remaining_balance=row.remaining_balance,
            )
            for row in schedule.installments
        ]
        return agreement

    def approve(self, approved_by: str) -> 'InstallmentAgreement':
        if self.status is not AgreementStatus.PENDING:
            raise AgreementStateError(f"cannot approve agreement in status {self.status.value}")
        now = datetime.now()
        self.status = AgreementStatus.APPROVED
        self.approved_by = approved_by
        self.approved_at = now
        self.updated_at = now
        return self

    def cancel(self) -> 'InstallmentAgreement':
        if self.status in (AgreementStatus.COMPLETED, AgreementStatus.CANCELLED):
            raise AgreementStateError(f"cannot cancel agreement in status {self.status.value}")
        self.status = AgreementStatus.CANCELLED
        self.updated_at = datetime.now()
        return self

    def complete_if_fully_paid(self) -> bool:
        """Move to COMPLETED once every installment is paid. Returns True on transition."""
        if not self.installments or self.status is AgreementStatus.COMPLETED:
            return False
        if all(inst.is_paid for inst in self.installments):
            self.status = AgreementStatus.COMPLETED
            self.updated_at = datetime.now()
            return True
        return False

    def next_unpaid_installment(self) -> Optional[Installment]:
        unpaid = [inst for inst in self.installments if not inst.is_paid]
        return min(unpaid, key=lambda inst: inst.installment_number) if unpaid else None

    def unpaid_installments(self) -> list[Installment]:
        unpaid = [inst for inst in self.installments if not inst.is_paid]
        return sorted(unpaid, key=lambda inst: jalali_sort_key(inst.due_date))
