"""
Amortization Module

Builds the fixed-payment installment schedule of an installment sale.

Formula:
    payment = P * r * (1 + r)^n / ((1 + r)^n - 1)     (r > 0)
    payment = P / n                                   (r == 0)

    P = total_amount - down_payment
    r = annual_rate / 12 / 100

The payment is rounded to INSTALLMENT_ROUNDING_UNIT Rials before the
schedule is decomposed. Interest of each period is charged on the balance
before that period's principal; the last period's principal is whatever
balance is left so the schedule always closes at zero.
"""
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from .jalali_calendar import get_installment_due_date_from_agreement

INSTALLMENT_ROUNDING_UNIT = 100_000

Amount = Union[int, float]


class PaymentBasis(Enum):
    """Which periodic payment the interest/principal split is computed against."""
    ROUNDED = "rounded"      # order creation: the rounded payment the customer pays
    UNROUNDED = "unrounded"  # calculator: the raw annuity value


@dataclass
class ScheduleRow:
    installment_number: int
    due_date: str
    installment_amount: int
    interest_amount: int
    principal_amount: Amount
    remaining_balance: Amount


@dataclass
class AmortizationSchedule:
    principal_amount: Amount
    installment_amount: int
    raw_installment_amount: float
    total_interest: Amount
    total_payment: int
    monthly_rate_percent: float
    annual_rate: float
    number_of_installments: int
    payment_basis: PaymentBasis = PaymentBasis.ROUNDED
    installments: list[ScheduleRow] = field(default_factory=list)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up."""
    return math.floor(value + 0.5)


def round_to_unit(amount: float, unit: int = INSTALLMENT_ROUNDING_UNIT) -> int:
    """Round an amount to the nearest multiple of unit."""
    return round_half_up(amount / unit) * unit


def annuity_payment(principal: Amount, monthly_rate: float, number_of_installments: int) -> float:
    """Fixed periodic payment that amortizes principal over n periods."""
    if monthly_rate == 0:
        return principal / number_of_installments
    growth = (1 + monthly_rate) ** number_of_installments
    return principal * monthly_rate * growth / (growth - 1)


def compute_amortization_schedule(
    total_amount: Amount,
    down_payment: Amount,
    number_of_installments: int,
    annual_rate: float,
    agreement_date: str,
    payment_basis: PaymentBasis = PaymentBasis.ROUNDED,
) -> Optional[AmortizationSchedule]:
    """
    Compute the full installment schedule of a credit sale.

    Args:
        total_amount: Sale amount in Rials
        down_payment: Amount paid upfront in Rials
        number_of_installments: Number of monthly installments (>= 1)
        annual_rate: Annual interest rate in percent (36 means 36%)
        agreement_date: Jalali agreement date "YYYY/MM/DD" (ASCII or Persian digits)
        payment_basis: Payment the per-period split is computed against

    Returns:
        AmortizationSchedule, or None when the terms cannot produce a schedule
        (down payment above total, non-positive principal, fewer than one installment)
    """
    if down_payment > total_amount:
        return None
    principal = total_amount - down_payment
    if principal <= 0:
        return None
    if number_of_installments < 1:
        return None

    monthly_rate = annual_rate / 12 / 100
    raw_payment = annuity_payment(principal, monthly_rate, number_of_installments)
    payment = round_to_unit(raw_payment)
    split_payment = payment if payment_basis is PaymentBasis.ROUNDED else raw_payment

    rows: list[ScheduleRow] = []
    remaining_balance: Amount = principal
    for number in range(1, number_of_installments + 1):
        interest = round_half_up(remaining_balance * monthly_rate)
        if number == number_of_installments:
            principal_part = remaining_balance
        else:
            # Kept within [0, balance] so the rows always sum to the principal
            principal_part = min(max(split_payment - interest, 0), remaining_balance)
        remaining_balance = max(0, remaining_balance - principal_part)

        rows.append(ScheduleRow(
            installment_number=number,
            due_date=get_installment_due_date_from_agreement(agreement_date, number),
            installment_amount=payment,
            interest_amount=interest,
            principal_amount=principal_part,
            remaining_balance=remaining_balance,
        ))

    total_payment = payment * number_of_installments
    return AmortizationSchedule(
        principal_amount=principal,
        installment_amount=payment,
        raw_installment_amount=raw_payment,
        total_interest=total_payment - principal,
        total_payment=total_payment,
        monthly_rate_percent=monthly_rate * 100,
        annual_rate=annual_rate,
        number_of_installments=number_of_installments,
        payment_basis=payment_basis,
        installments=rows,
    )
