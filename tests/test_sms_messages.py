from domain.services.sms_messages import (
    cash_payment_message,
    format_amount,
    installment_payment_message,
    manual_message,
    order_created_message,
)


def test_format_amount():
    assert format_amount(12_500_000) == "۱۲٬۵۰۰٬۰۰۰"
    assert format_amount(0) == "۰"
    assert format_amount(None) == ""


def test_order_created_message():
    template = order_created_message("رضا", "INV-12")
    assert template["message"] == "رضا گرامی\n\nلطفاً به صندوق مراجعه کنید. شماره فاکتور شما: INV-12"
    assert template["metadata"] == {"orderCode": "INV-12"}


def test_cash_payment_message():
    template = cash_payment_message("رضا", 3_000_000)
    assert template["message"] == "رضا گرامی\n\nسفارش شما ثبت شد (نقدی)"
    assert template["metadata"]["amount"] == "۳٬۰۰۰٬۰۰۰"


def test_installment_payment_message():
    template = installment_payment_message("رضا", "INV-12", 1_000_000, 900_000, "1403/02/01")
    assert "پیش‌پرداخت: ۱٬۰۰۰٬۰۰۰ ریال" in template["message"]
    assert "قسط بعدی: ۹۰۰٬۰۰۰ ریال در تاریخ 1403/02/01" in template["message"]
    assert template["metadata"]["invoiceCode"] == "INV-12"


def test_installment_payment_message_without_next_installment():
    template = installment_payment_message("رضا", "INV-12", 1_000_000, None, None)
    assert template["metadata"]["nextInstallmentAmount"] == "نامشخص"
    assert template["metadata"]["nextInstallmentDate"] == "نامشخص"


def test_manual_message_greeting_is_optional():
    assert manual_message("متن آزاد")["message"] == "متن آزاد"
    assert manual_message("متن آزاد", "رضا")["message"] == "رضا گرامی\n\nمتن آزاد"
