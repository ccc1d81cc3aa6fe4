#!/usr/bin/env python3
"""
Installment Schedule Simulator

Prints the amortization schedule the service would store for the given terms.

Usage:
    python scripts/simulate_schedule.py 10000000 1000000 12 --date 1403/01/01
    python scripts/simulate_schedule.py 10000000 1000000 12 --rate 24 --basis unrounded
    python scripts/simulate_schedule.py 10000000 1000000 12 --json

Arguments:
    total_amount: Order total in Rials
    down_payment: Down payment in Rials
    installments: Number of monthly installments
    --rate: Annual rate in percent (default INSTALLMENT_DEFAULT_ANNUAL_RATE)
    --date: Jalali agreement date (default today)
    --basis: rounded | unrounded
    --persian: Print amounts and dates with Persian digits
    --json: Output raw JSON instead of a table
"""
import argparse
import json
import os
import sys
from dataclasses import asdict

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

from domain.config import get_policy_config
from domain.services.amortization import AmortizationSchedule, PaymentBasis, compute_amortization_schedule
from domain.services.jalali_calendar import format_jalali_date_long, to_persian_digits, today_jalali
from domain.services.sms_messages import format_amount


def _amount(value: int, persian: bool) -> str:
    return format_amount(value) if persian else f"{value:,}"


def format_schedule(schedule: AmortizationSchedule, agreement_date: str, persian: bool = False) -> str:
    """Format schedule as a text table."""
    lines = []

    lines.append("=" * 78)
    lines.append("جدول اقساط")
    lines.append("=" * 78)
    lines.append(f"تاریخ قرارداد: {format_jalali_date_long(agreement_date)}")
    lines.append(f"مبلغ اصل وام: {_amount(schedule.principal_amount, persian)} ریال")
    lines.append(f"نرخ سالانه: {schedule.annual_rate}% (ماهانه {schedule.monthly_rate_percent:.4f}%)")
    lines.append(f"مبلغ هر قسط: {_amount(schedule.installment_amount, persian)} ریال")
    lines.append(f"مبلغ دقیق قسط: {schedule.raw_installment_amount:,.2f}")
    lines.append(f"جمع سود: {_amount(schedule.total_interest, persian)} ریال")
    lines.append(f"جمع پرداختی: {_amount(schedule.total_payment, persian)} ریال")
    lines.append(f"مبنای تقسیم: {schedule.payment_basis.value}")

    lines.append("\n" + "-" * 78)
    lines.append(f"{'#':>3}  {'سررسید':<10}  {'قسط':>14}  {'سود':>14}  {'اصل':>14}  {'مانده':>14}")
    lines.append("-" * 78)
    for row in schedule.installments:
        number = to_persian_digits(row.installment_number) if persian else str(row.installment_number)
        due_date = to_persian_digits(row.due_date) if persian else row.due_date
        lines.append(
            f"{number:>3}  {due_date:<10}  "
            f"{_amount(row.installment_amount, persian):>14}  "
            f"{_amount(row.interest_amount, persian):>14}  "
            f"{_amount(row.principal_amount, persian):>14}  "
            f"{_amount(row.remaining_balance, persian):>14}"
        )

    lines.append("=" * 78)
    return "\n".join(lines)


def main():
    policy = get_policy_config()
    parser = argparse.ArgumentParser(
        description="Simulate an installment agreement schedule"
    )
    parser.add_argument("total_amount", type=int, help="Order total in Rials")
    parser.add_argument("down_payment", type=int, help="Down payment in Rials")
    parser.add_argument(
        "installments",
        type=int,
        nargs="?",
        default=policy.default_installments,
        help="Number of monthly installments"
    )
    parser.add_argument(
        "--rate",
        type=float,
        default=policy.default_annual_rate,
        help="Annual rate in percent"
    )
    parser.add_argument(
        "--date",
        default=None,
        help="Jalali agreement date, e.g. 1403/01/01 (default today)"
    )
    parser.add_argument(
        "--basis",
        choices=[basis.value for basis in PaymentBasis],
        default=PaymentBasis.ROUNDED.value,
        help="Split rows on the rounded or the exact installment amount"
    )
    parser.add_argument(
        "--persian",
        action="store_true",
        help="Print numbers with Persian digits"
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output raw JSON"
    )

    args = parser.parse_args()

    agreement_date = args.date or today_jalali()
    if args.installments > policy.max_installments:
        print(f"Error: at most {policy.max_installments} installments are allowed")
        sys.exit(1)

    schedule = compute_amortization_schedule(
        total_amount=args.total_amount,
        down_payment=args.down_payment,
        number_of_installments=args.installments,
        annual_rate=args.rate,
        agreement_date=agreement_date,
        payment_basis=PaymentBasis(args.basis),
    )
    if schedule is None:
        print("Error: down payment exceeds the total, nothing is financed, or installments < 1")
        sys.exit(1)

    if args.json:
        output = asdict(schedule)
        output["payment_basis"] = schedule.payment_basis.value
        print(json.dumps(output, indent=2, ensure_ascii=False))
    else:
        print(format_schedule(schedule, agreement_date, persian=args.persian))


if __name__ == "__main__":
    main()
