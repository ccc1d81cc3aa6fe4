"""
SMS Message Templates

Persian message bodies for the customer notifications sent by the shop.
Amounts are rendered with Persian digits and the Persian thousands separator.
"""
from typing import Optional, TypedDict

from .jalali_calendar import to_persian_digits

UNKNOWN_TEXT = "نامشخص"
PERSIAN_THOUSANDS_SEPARATOR = "٬"


class SmsTemplate(TypedDict):
    message: str
    metadata: dict[str, str]


def format_amount(value: Optional[int]) -> str:
    """12500000 -> "۱۲٬۵۰۰٬۰۰۰"; None -> ""."""
    if value is None:
        return ""
    grouped = f"{int(round(value)):,}".replace(",", PERSIAN_THOUSANDS_SEPARATOR)
    return to_persian_digits(grouped)


def _greeting(customer_name: str) -> str:
    return f"{customer_name} گرامی\n\n"


def order_created_message(customer_name: str, invoice_code: str) -> SmsTemplate:
    return SmsTemplate(
        message=f"{_greeting(customer_name)}لطفاً به صندوق مراجعه کنید. شماره فاکتور شما: {invoice_code}",
        metadata={"orderCode": invoice_code},
    )


def cash_payment_message(customer_name: str, total_amount: Optional[int] = None) -> SmsTemplate:
    return SmsTemplate(
        message=f"{_greeting(customer_name)}سفارش شما ثبت شد (نقدی)",
        metadata={"amount": format_amount(total_amount)},
    )


def installment_payment_message(
    customer_name: str,
    invoice_code: str,
    down_payment: int,
    next_installment_amount: Optional[int],
    next_due_date: Optional[str],
) -> SmsTemplate:
    """
    Message sent when an installment sale is registered.

    Args:
        customer_name: Customer display name
        invoice_code: Invoice number, or order id when the order has none
        down_payment: Down payment in Rials
        next_installment_amount: Amount of the next unpaid installment, if any
        next_due_date: Jalali due date of the next unpaid installment, if any
    """
    down_payment_text = format_amount(down_payment)
    next_amount_text = format_amount(next_installment_amount) if next_installment_amount is not None else UNKNOWN_TEXT
    next_date_text = next_due_date or UNKNOWN_TEXT
    message = (
        f"{_greeting(customer_name)}پرداخت اقساطی ثبت شد. شماره فاکتور: {invoice_code}. "
        f"پیش‌پرداخت: {down_payment_text} ریال. "
        f"قسط بعدی: {next_amount_text} ریال در تاریخ {next_date_text}"
    )
    return SmsTemplate(
        message=message,
        metadata={
            "downPayment": down_payment_text,
            "nextInstallmentAmount": next_amount_text,
            "nextInstallmentDate": next_date_text,
            "invoiceCode": invoice_code,
        },
    )


def manual_message(text: str, customer_name: Optional[str] = None) -> SmsTemplate:
    message = f"{_greeting(customer_name)}{text}" if customer_name else text
    return SmsTemplate(message=message, metadata={})
