# entities test

import pytest

from domain.entities import (
    AgreementStatus,
    GuaranteeType,
    Installment,
    InstallmentAgreement,
    InstallmentStatus,
)
from domain.exceptions import AgreementStateError, InvalidAgreementTermsError


def _agreement(**overrides) -> InstallmentAgreement:
    terms = dict(
        order_id="order-1",
        customer_id="customer-1",
        total_amount=10_000_000,
        down_payment=1_000_000,
        number_of_installments=12,
        annual_rate=36,
        guarantee_type=GuaranteeType.CHEQUE,
        agreement_date="1403/01/01",
        created_by="user-1",
    )
    terms.update(overrides)
    return InstallmentAgreement.create(**terms)


def test_agreement_entity_create():
    agreement = _agreement()
    assert agreement.id is not None
    assert agreement.status == AgreementStatus.PENDING
    assert agreement.principal_amount == 9_000_000
    assert agreement.installment_amount == 900_000
    assert agreement.total_payment == 10_800_000
    assert agreement.total_interest == 1_800_000
    assert agreement.monthly_rate == pytest.approx(3.0)
    assert len(agreement.installments) == 12
    assert all(inst.agreement_id == agreement.id for inst in agreement.installments)
    assert all(not inst.is_paid for inst in agreement.installments)
    assert agreement.installments[0].due_date == "1403/02/01"
    assert agreement.created_at is not None


def test_agreement_date_is_stored_with_ascii_digits():
    agreement = _agreement(agreement_date="۱۴۰۳-۱-۵")
    assert agreement.agreement_date == "1403/01/05"
    assert agreement.installments[0].due_date == "1403/02/05"


def test_agreement_create_rejects_invalid_terms():
    with pytest.raises(InvalidAgreementTermsError):
        _agreement(down_payment=20_000_000)
    with pytest.raises(InvalidAgreementTermsError):
        _agreement(number_of_installments=0)


def test_agreement_create_rejects_invalid_date():
    with pytest.raises(InvalidAgreementTermsError):
        _agreement(agreement_date="1403/13/01")


def test_approve_only_from_pending():
    agreement = _agreement()
    agreement.approve("manager-1")
    assert agreement.status == AgreementStatus.APPROVED
    assert agreement.approved_by == "manager-1"
    assert agreement.approved_at is not None

    with pytest.raises(AgreementStateError):
        agreement.approve("manager-2")


def test_cancel_not_allowed_after_completion():
    agreement = _agreement(number_of_installments=1)
    agreement.installments[0].mark_paid(paid_by="cashier", paid_amount=agreement.installment_amount, payment_date="1403/02/01")
    assert agreement.complete_if_fully_paid() is True
    assert agreement.status == AgreementStatus.COMPLETED

    with pytest.raises(AgreementStateError):
        agreement.cancel()


def test_cancel_from_approved():
    agreement = _agreement()
    agreement.approve("manager-1")
    agreement.cancel()
    assert agreement.status == AgreementStatus.CANCELLED
    with pytest.raises(AgreementStateError):
        agreement.cancel()


def test_complete_if_fully_paid_waits_for_every_installment():
    agreement = _agreement(number_of_installments=2)
    agreement.installments[0].mark_paid(paid_by="cashier", paid_amount=1, payment_date="1403/02/01")
    assert agreement.complete_if_fully_paid() is False
    assert agreement.status == AgreementStatus.PENDING


def test_next_and_unpaid_installments():
    agreement = _agreement(number_of_installments=3)
    first, second, third = agreement.installments
    first.mark_paid(paid_by="cashier", paid_amount=first.installment_amount, payment_date="1403/02/01")

    assert agreement.next_unpaid_installment() is second
    assert agreement.unpaid_installments() == [second, third]


def test_installment_entity_create():
    installment = Installment.create(
        agreement_id="123",
        installment_number=1,
        due_date="1403/02/01",
        installment_amount=900_000,
        interest_amount=270_000,
        principal_amount=630_000,
        remaining_balance=8_370_000,
    )
    assert installment.id is not None
    assert installment.agreement_id == "123"
    assert installment.is_paid is False
    assert installment.paid_at is None


class TestInstallmentStatus:
    @pytest.fixture
    def installment(self):
        return Installment.create("a", 1, "1403/02/01", 900_000, 270_000, 630_000, 8_370_000)

    def test_pending_before_due_date(self, installment):
        assert installment.status_on("1403/01/15") == InstallmentStatus.PENDING

    def test_pending_on_due_date(self, installment):
        assert installment.status_on("1403/02/01") == InstallmentStatus.PENDING

    def test_overdue_after_due_date(self, installment):
        assert installment.status_on("1403/03/01") == InstallmentStatus.OVERDUE
        assert installment.status_on("1403/03/01").label == "سررسید گذشته"

    def test_paid_wins_over_overdue(self, installment):
        installment.mark_paid(paid_by="cashier", paid_amount=900_000, payment_date="1403/03/01", notes="late")
        assert installment.status_on("1404/01/01") == InstallmentStatus.PAID
        assert installment.paid_at is not None
        assert installment.notes == "late"


def test_enum_labels():
    assert AgreementStatus.PENDING.label == "در انتظار پرداخت"
    assert AgreementStatus.COMPLETED.label == "تکمیل شده"
    assert InstallmentStatus.PAID.label == "پرداخت شده"
    assert GuaranteeType.CHEQUE.label == "چک"
    assert GuaranteeType.GOLD.label == "طلا"
