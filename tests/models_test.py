"""Mapping between domain entities and SQLAlchemy models (no database)."""
from domain.entities import AgreementStatus, GuaranteeType, InstallmentAgreement
from infrastructure.db.models import AgreementModel, InstallmentModel


def _agreement() -> InstallmentAgreement:
    return InstallmentAgreement.create(
        order_id="order-1",
        customer_id="customer-1",
        total_amount=10_000_000,
        down_payment=1_000_000,
        number_of_installments=3,
        annual_rate=36,
        guarantee_type=GuaranteeType.GOLD,
        agreement_date="1403/01/01",
        created_by="user-1",
    )


def test_agreement_model_round_trip():
    agreement = _agreement()
    model = AgreementModel.from_domain(agreement)
    model.installments_rel = [InstallmentModel.from_domain(inst) for inst in agreement.installments]

    restored = model.to_domain()

    assert restored.id == agreement.id
    assert restored.guarantee_type is GuaranteeType.GOLD
    assert restored.status is AgreementStatus.PENDING
    assert restored.installment_amount == agreement.installment_amount
    assert [inst.due_date for inst in restored.installments] == ["1403/02/01", "1403/03/01", "1403/04/01"]
    assert [inst.remaining_balance for inst in restored.installments][-1] == 0


def test_apply_changes_copies_payment_and_status_fields():
    agreement = _agreement()
    inst = agreement.installments[0]
    agreement_model = AgreementModel.from_domain(agreement)
    inst_model = InstallmentModel.from_domain(inst)

    inst.mark_paid(paid_by="cashier", paid_amount=inst.installment_amount, payment_date="1403/02/01", notes="نقد")
    agreement.approve("manager-1")
    inst_model.apply_changes(inst)
    agreement_model.apply_status(agreement)

    assert inst_model.is_paid is True
    assert inst_model.paid_by == "cashier"
    assert inst_model.payment_date == "1403/02/01"
    assert inst_model.notes == "نقد"
    assert agreement_model.status == "approved"
    assert agreement_model.approved_by == "manager-1"
