"""
Tests for AgreementRepoSqlalchemy over a mocked AsyncSession.

Tests verify:
- An agreement and its installments are written in one commit, or rolled back together
- A unique order_id violation surfaces as AgreementStateError
- Status and installment changes share one commit
- Rows that no longer exist fail the write instead of being skipped
"""
import pytest
from sqlalchemy.exc import IntegrityError

from domain.entities import AgreementStatus, GuaranteeType, InstallmentAgreement
from domain.exceptions import AgreementNotFoundError, AgreementStateError, InstallmentNotFoundError
from infrastructure.db.models import AgreementModel, InstallmentModel
from infrastructure.db.repositories.agreement_repo_sqlalchemy import AgreementRepoSqlalchemy


def _agreement() -> InstallmentAgreement:
    return InstallmentAgreement.create(
        order_id="order-1",
        customer_id="customer-1",
        total_amount=10_000_000,
        down_payment=1_000_000,
        number_of_installments=3,
        annual_rate=36,
        guarantee_type=GuaranteeType.CHEQUE,
        agreement_date="1403/01/01",
        created_by="user-1",
    )


@pytest.fixture
def session(mocker):
    db = mocker.MagicMock()
    db.flush = mocker.AsyncMock()
    db.commit = mocker.AsyncMock()
    db.rollback = mocker.AsyncMock()
    db.get = mocker.AsyncMock(return_value=None)
    return db


def _stored(session, agreement: InstallmentAgreement):
    """Make session.get return persisted models for the agreement and its installments."""
    rows = {(AgreementModel, agreement.id): AgreementModel.from_domain(agreement)}
    for inst in agreement.installments:
        rows[(InstallmentModel, inst.id)] = InstallmentModel.from_domain(inst)
    session.get.side_effect = lambda model, key: rows.get((model, key))
    return rows


class TestSaveAgreement:
    @pytest.mark.asyncio
    async def test_agreement_and_installments_share_one_commit(self, session):
        agreement = _agreement()

        saved = await AgreementRepoSqlalchemy(session).save_agreement(agreement)

        assert saved is agreement
        added = [call.args[0] for call in session.add.call_args_list]
        assert isinstance(added[0], AgreementModel)
        assert [model.installment_number for model in added[1:]] == [1, 2, 3]
        assert all(model.agreement_rel is added[0] for model in added[1:])
        session.commit.assert_awaited_once()
        session.rollback.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_commit_failure_rolls_back_everything(self, session):
        session.commit.side_effect = RuntimeError("connection lost")

        with pytest.raises(RuntimeError):
            await AgreementRepoSqlalchemy(session).save_agreement(_agreement())

        session.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_flush_failure_writes_no_installments(self, session):
        session.flush.side_effect = RuntimeError("connection lost")

        with pytest.raises(RuntimeError):
            await AgreementRepoSqlalchemy(session).save_agreement(_agreement())

        assert session.add.call_count == 1
        session.commit.assert_not_awaited()
        session.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_duplicate_order_is_a_state_error(self, session):
        session.commit.side_effect = IntegrityError(
            "INSERT INTO agreements", {}, Exception("duplicate key value violates unique constraint")
        )

        with pytest.raises(AgreementStateError, match="order-1"):
            await AgreementRepoSqlalchemy(session).save_agreement(_agreement())

        session.rollback.assert_awaited_once()


class TestUpdates:
    @pytest.mark.asyncio
    async def test_status_and_paid_installment_share_one_commit(self, session):
        agreement = _agreement()
        rows = _stored(session, agreement)
        agreement.approve("admin")
        installment = agreement.installments[0]
        installment.mark_paid(paid_by="cashier", paid_amount=installment.installment_amount, payment_date="1403/02/01")

        await AgreementRepoSqlalchemy(session).update_agreement(agreement, [installment])

        assert rows[(AgreementModel, agreement.id)].status == AgreementStatus.APPROVED.value
        assert rows[(AgreementModel, agreement.id)].approved_by == "admin"
        inst_model = rows[(InstallmentModel, installment.id)]
        assert inst_model.is_paid is True
        assert inst_model.payment_date == "1403/02/01"
        session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_missing_agreement_is_not_committed(self, session):
        with pytest.raises(AgreementNotFoundError):
            await AgreementRepoSqlalchemy(session).update_agreement(_agreement())

        session.commit.assert_not_awaited()
        session.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_missing_installment_fails_the_payment_write(self, session):
        agreement = _agreement()
        _stored(session, agreement)
        other = _agreement().installments[0]

        with pytest.raises(InstallmentNotFoundError):
            await AgreementRepoSqlalchemy(session).update_agreement(agreement, [other])

        session.commit.assert_not_awaited()
        session.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_update_installments_rejects_missing_rows(self, session):
        agreement = _agreement()
        rows = _stored(session, agreement)
        del rows[(InstallmentModel, agreement.installments[2].id)]

        with pytest.raises(InstallmentNotFoundError):
            await AgreementRepoSqlalchemy(session).update_installments(agreement.installments)

        session.commit.assert_not_awaited()
        session.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_update_installments_without_changes_is_a_no_op(self, session):
        await AgreementRepoSqlalchemy(session).update_installments([])

        session.get.assert_not_awaited()
        session.commit.assert_not_awaited()
