# src/schemas/agreement_schema.py
from typing import Optional, List, Union
from datetime import datetime
from pydantic import BaseModel, Field, field_validator

from domain.config import get_policy_config
from domain.entities import GuaranteeType, Installment, InstallmentAgreement, SmsEvent, SmsSendResult
from domain.services import AmortizationSchedule, PaymentBasis
from domain.services.jalali_calendar import format_jalali_date_long


def _check_installment_cap(value: int) -> int:
    max_installments = get_policy_config().max_installments
    if value > max_installments:
        raise ValueError(f"number_of_installments must be at most {max_installments}")
    return value


class ScheduleRequest(BaseModel):
    total_amount: int = Field(ge=0, description="Order total in Rials")
    down_payment: int = Field(ge=0, description="Down payment in Rials")
    number_of_installments: int = Field(
        default_factory=lambda: get_policy_config().default_installments, ge=1
    )
    annual_rate: float = Field(
        default_factory=lambda: get_policy_config().default_annual_rate, ge=0,
        description="Annual rate in percent, e.g. 36"
    )
    agreement_date: str = Field(description="Jalali date, e.g. 1403/01/01", examples=["1403/01/01"])

    @field_validator("number_of_installments")
    @classmethod
    def installments_within_policy(cls, value: int) -> int:
        return _check_installment_cap(value)


class SchedulePreviewRequest(ScheduleRequest):
    payment_basis: Optional[PaymentBasis] = None


class ScheduleRowResponse(BaseModel):
    installment_number: int
    due_date: str
    installment_amount: int
    interest_amount: int
    principal_amount: Union[int, float]
    remaining_balance: Union[int, float]


class ScheduleResponse(BaseModel):
    principal_amount: Union[int, float]
    installment_amount: int
    raw_installment_amount: float
    total_interest: Union[int, float]
    total_payment: int
    monthly_rate_percent: float
    annual_rate: float
    number_of_installments: int
    payment_basis: PaymentBasis
    installments: List[ScheduleRowResponse]

    @classmethod
    def from_domain(cls, schedule: AmortizationSchedule) -> 'ScheduleResponse':
        return cls(
            principal_amount=schedule.principal_amount,
            installment_amount=schedule.installment_amount,
            raw_installment_amount=schedule.raw_installment_amount,
            total_interest=schedule.total_interest,
            total_payment=schedule.total_payment,
            monthly_rate_percent=schedule.monthly_rate_percent,
            annual_rate=schedule.annual_rate,
            number_of_installments=schedule.number_of_installments,
            payment_basis=schedule.payment_basis,
            installments=[
                ScheduleRowResponse(
                    installment_number=row.installment_number,
                    due_date=row.due_date,
                    installment_amount=row.installment_amount,
                    interest_amount=row.interest_amount,
                    principal_amount=row.principal_amount,
                    remaining_balance=row.remaining_balance,
                )
                for row in schedule.installments
            ],
        )


class AgreementCreate(ScheduleRequest):
    order_id: str
    customer_id: str
    guarantee_type: GuaranteeType
    created_by: str


class InstallmentResponse(BaseModel):
    id: str
    agreement_id: str
    installment_number: int
    due_date: str
    due_date_label: str
    installment_amount: int
    interest_amount: int
    principal_amount: int
    remaining_balance: int
    is_paid: bool
    status: str
    status_label: str
    paid_at: Optional[datetime] = None
    paid_by: Optional[str] = None
    paid_amount: Optional[int] = None
    payment_date: Optional[str] = None
    notes: Optional[str] = None

    @classmethod
    def from_domain(cls, inst: Installment, today: Optional[str] = None) -> 'InstallmentResponse':
        status = inst.status_on(today)
        return cls(
            id=inst.id,
            agreement_id=inst.agreement_id,
            installment_number=inst.installment_number,
            due_date=inst.due_date,
            due_date_label=format_jalali_date_long(inst.due_date),
            installment_amount=inst.installment_amount,
            interest_amount=inst.interest_amount,
            principal_amount=inst.principal_amount,
            remaining_balance=inst.remaining_balance,
            is_paid=inst.is_paid,
            status=status.value,
            status_label=status.label,
            paid_at=inst.paid_at,
            paid_by=inst.paid_by,
            paid_amount=inst.paid_amount,
            payment_date=inst.payment_date,
            notes=inst.notes,
        )


class AgreementResponse(BaseModel):
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
    guarantee_type: str
    guarantee_type_label: str
    agreement_date: str
    status: str
    status_label: str
    created_by: str
    approved_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    approved_at: Optional[datetime] = None
    installments: List[InstallmentResponse] = []

    @classmethod
    def from_domain(cls, agreement: InstallmentAgreement, today: Optional[str] = None) -> 'AgreementResponse':
        return cls(
            id=agreement.id,
            order_id=agreement.order_id,
            customer_id=agreement.customer_id,
            total_amount=agreement.total_amount,
            down_payment=agreement.down_payment,
            principal_amount=agreement.principal_amount,
            number_of_installments=agreement.number_of_installments,
            annual_rate=agreement.annual_rate,
            monthly_rate=agreement.monthly_rate,
            installment_amount=agreement.installment_amount,
            total_interest=agreement.total_interest,
            total_payment=agreement.total_payment,
            guarantee_type=agreement.guarantee_type.value,
            guarantee_type_label=agreement.guarantee_type.label,
            agreement_date=agreement.agreement_date,
            status=agreement.status.value,
            status_label=agreement.status.label,
            created_by=agreement.created_by,
            approved_by=agreement.approved_by,
            created_at=agreement.created_at,
            updated_at=agreement.updated_at,
            approved_at=agreement.approved_at,
            installments=[
                InstallmentResponse.from_domain(inst, today)
                for inst in sorted(agreement.installments, key=lambda i: i.installment_number)
            ],
        )


class UnpaidInstallmentResponse(InstallmentResponse):
    order_id: str


class ApproveRequest(BaseModel):
    approved_by: str


class PayInstallmentRequest(BaseModel):
    paid_by: str
    paid_amount: Optional[int] = Field(default=None, ge=0, description="Defaults to the installment amount")
    payment_date: Optional[str] = Field(default=None, description="Jalali date; defaults to today")
    notes: Optional[str] = None


class PaymentResponse(BaseModel):
    installment: InstallmentResponse
    agreement_status: str
    agreement_completed: bool


class BackfillRequest(BaseModel):
    agreement_id: Optional[str] = None


class BackfillResponse(BaseModel):
    updated: int


class InstallmentSmsRequest(BaseModel):
    receptor: str = Field(min_length=1, description="Customer mobile number")
    customer_name: str
    invoice_code: Optional[str] = None


class OrderSmsRequest(BaseModel):
    event: SmsEvent
    receptor: str = Field(min_length=1)
    customer_name: Optional[str] = None
    order_id: Optional[str] = None
    invoice_code: Optional[str] = None
    total_amount: Optional[int] = Field(default=None, ge=0)
    text: Optional[str] = None


class SmsResponse(BaseModel):
    success: bool
    status_text: str
    provider_message_id: Optional[str] = None
    attempts: int = 0

    @classmethod
    def from_domain(cls, result: SmsSendResult) -> 'SmsResponse':
        return cls(
            success=result.success,
            status_text=result.status_text,
            provider_message_id=result.provider_message_id,
            attempts=result.attempts,
        )
