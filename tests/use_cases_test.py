# use cases test

import pytest

from application.service.agreement_queries import (
    GetAgreementService,
    GetOrderAgreementService,
    ListAgreementsService,
    UnpaidInstallmentsService,
)
from application.service.agreement_status import ApproveAgreementService, CancelAgreementService
from application.service.backfill_due_dates import BackfillDueDatesService
from application.service.create_agreement import CreateAgreementService
from application.service.notify_installment import SendInstallmentSmsService, SendOrderSmsService
from application.service.pay_installment import PayInstallmentService
from application.service.preview_schedule import PreviewScheduleService
from domain.entities import (
    AgreementStatus,
    GuaranteeType,
    InstallmentAgreement,
    SmsEvent,
    SmsSendResult,
)
from domain.exceptions import (
    AgreementNotFoundError,
    AgreementStateError,
    InstallmentAlreadyPaidError,
    InstallmentNotFoundError,
    InsufficientPaymentError,
    InvalidAgreementTermsError,
    InvalidDateError,
)
from domain.interfaces import AgreementRepository, MetricsPort, SmsPort
from domain.services import PaymentBasis


def _agreement(number_of_installments: int = 12, order_id: str = "order-1") -> InstallmentAgreement:
    return InstallmentAgreement.create(
        order_id=order_id,
        customer_id="customer-1",
        total_amount=10_000_000,
        down_payment=1_000_000,
        number_of_installments=number_of_installments,
        annual_rate=36,
        guarantee_type=GuaranteeType.GOLD,
        agreement_date="1403/01/01",
        created_by="user-1",
    )


@pytest.fixture
def mock_agreement_repo(mocker):
    """Fixture to create a mock of the repository using pytest-mock"""
    mock_repo = mocker.AsyncMock(spec=AgreementRepository)
    mock_repo.get_by_order_id.return_value = None
    mock_repo.save_agreement.side_effect = lambda agreement: agreement
    return mock_repo


@pytest.fixture
def mock_metrics(mocker):
    return mocker.Mock(spec=MetricsPort)


class TestCreateAgreement:
    @pytest.mark.asyncio
    async def test_creates_and_persists_agreement(self, mock_agreement_repo, mock_metrics):
        service = CreateAgreementService(mock_agreement_repo, metrics_port=mock_metrics)
        agreement = await service.execute(
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

        assert agreement.installment_amount == 900_000
        assert len(agreement.installments) == 12
        mock_agreement_repo.save_agreement.assert_awaited_once_with(agreement)
        mock_metrics.increment_agreements_created.assert_called_once_with(guarantee_type="cheque")

    @pytest.mark.asyncio
    async def test_invalid_terms_are_not_persisted(self, mock_agreement_repo, mock_metrics):
        service = CreateAgreementService(mock_agreement_repo, metrics_port=mock_metrics)
        with pytest.raises(InvalidAgreementTermsError):
            await service.execute(
                order_id="order-1",
                customer_id="customer-1",
                total_amount=1_000_000,
                down_payment=2_000_000,
                number_of_installments=12,
                annual_rate=36,
                guarantee_type=GuaranteeType.CHEQUE,
                agreement_date="1403/01/01",
                created_by="user-1",
            )

        mock_agreement_repo.save_agreement.assert_not_awaited()
        mock_metrics.increment_schedule_rejected.assert_called_once()
        mock_metrics.increment_agreements_created.assert_not_called()

    @pytest.mark.asyncio
    async def test_order_with_existing_agreement_is_rejected(self, mock_agreement_repo):
        mock_agreement_repo.get_by_order_id.return_value = _agreement()
        service = CreateAgreementService(mock_agreement_repo)
        with pytest.raises(AgreementStateError):
            await service.execute(
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
        mock_agreement_repo.save_agreement.assert_not_awaited()


class TestPreviewSchedule:
    @pytest.mark.asyncio
    async def test_preview_uses_requested_basis(self):
        schedule = await PreviewScheduleService().execute(
            total_amount=10_000_000,
            down_payment=1_000_000,
            number_of_installments=12,
            annual_rate=36,
            agreement_date="1403/01/01",
            payment_basis=PaymentBasis.UNROUNDED,
        )
        assert schedule.payment_basis is PaymentBasis.UNROUNDED
        assert schedule.installments[0].principal_amount == pytest.approx(634_158.8, abs=1)

    @pytest.mark.asyncio
    async def test_preview_rejects_invalid_terms(self, mock_metrics):
        with pytest.raises(InvalidAgreementTermsError):
            await PreviewScheduleService(metrics_port=mock_metrics).execute(
                total_amount=1_000_000,
                down_payment=1_000_000,
                number_of_installments=12,
                annual_rate=36,
                agreement_date="1403/01/01",
            )
        mock_metrics.increment_schedule_rejected.assert_called_once()


class TestQueries:
    @pytest.mark.asyncio
    async def test_get_agreement_not_found(self, mock_agreement_repo):
        mock_agreement_repo.get_agreement.return_value = None
        with pytest.raises(AgreementNotFoundError):
            await GetAgreementService(mock_agreement_repo).execute("missing")

    @pytest.mark.asyncio
    async def test_get_order_agreement(self, mock_agreement_repo):
        agreement = _agreement()
        mock_agreement_repo.get_by_order_id.return_value = agreement
        assert await GetOrderAgreementService(mock_agreement_repo).execute("order-1") is agreement

    @pytest.mark.asyncio
    async def test_list_passes_status_value(self, mock_agreement_repo):
        mock_agreement_repo.list_agreements.return_value = []
        await ListAgreementsService(mock_agreement_repo).execute(AgreementStatus.APPROVED)
        mock_agreement_repo.list_agreements.assert_awaited_once_with(status="approved")

    @pytest.mark.asyncio
    async def test_unpaid_installments_sorted_and_skip_cancelled(self, mock_agreement_repo):
        later = InstallmentAgreement.create(
            order_id="order-2",
            customer_id="customer-1",
            total_amount=3_000_000,
            down_payment=0,
            number_of_installments=2,
            annual_rate=0,
            guarantee_type=GuaranteeType.CHEQUE,
            agreement_date="1403/01/15",
            created_by="user-1",
        )
        earlier = _agreement(number_of_installments=2)
        earlier.installments[0].mark_paid(paid_by="cashier", paid_amount=900_000, payment_date="1403/02/01")
        cancelled = _agreement(number_of_installments=2, order_id="order-3")
        cancelled.cancel()
        mock_agreement_repo.get_by_customer_id.return_value = [later, earlier, cancelled]

        unpaid = await UnpaidInstallmentsService(mock_agreement_repo).execute("customer-1")

        assert [(item.order_id, item.installment.due_date) for item in unpaid] == [
            ("order-2", "1403/02/15"),
            ("order-1", "1403/03/01"),
            ("order-2", "1403/03/15"),
        ]


class TestAgreementStatus:
    @pytest.mark.asyncio
    async def test_approve(self, mock_agreement_repo):
        agreement = _agreement()
        mock_agreement_repo.get_agreement.return_value = agreement

        result = await ApproveAgreementService(mock_agreement_repo).execute(agreement.id, approved_by="manager-1")

        assert result.status == AgreementStatus.APPROVED
        mock_agreement_repo.update_agreement.assert_awaited_once_with(agreement)

    @pytest.mark.asyncio
    async def test_approve_twice_conflicts(self, mock_agreement_repo):
        agreement = _agreement()
        agreement.approve("manager-1")
        mock_agreement_repo.get_agreement.return_value = agreement

        with pytest.raises(AgreementStateError):
            await ApproveAgreementService(mock_agreement_repo).execute(agreement.id, approved_by="manager-1")
        mock_agreement_repo.update_agreement.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cancel_unknown_agreement(self, mock_agreement_repo):
        mock_agreement_repo.get_agreement.return_value = None
        with pytest.raises(AgreementNotFoundError):
            await CancelAgreementService(mock_agreement_repo).execute("missing")


class TestPayInstallment:
    @pytest.fixture
    def agreement(self, mock_agreement_repo):
        agreement = _agreement(number_of_installments=2)
        mock_agreement_repo.get_agreement.return_value = agreement
        mock_agreement_repo.get_installment.side_effect = lambda installment_id: next(
            (inst for inst in agreement.installments if inst.id == installment_id), None
        )
        return agreement

    @pytest.mark.asyncio
    async def test_pay_defaults_to_installment_amount(self, mock_agreement_repo, mock_metrics, agreement):
        first = agreement.installments[0]
        service = PayInstallmentService(mock_agreement_repo, metrics_port=mock_metrics)

        payment = await service.execute(first.id, paid_by="cashier", payment_date="۱۴۰۳/۰۲/۰۱")

        assert payment.installment.is_paid is True
        assert payment.installment.paid_amount == first.installment_amount
        assert payment.installment.payment_date == "1403/02/01"
        assert payment.agreement_completed is False
        mock_agreement_repo.update_agreement.assert_awaited_once_with(agreement, [first])
        mock_metrics.increment_installments_paid.assert_called_once()

    @pytest.mark.asyncio
    async def test_last_payment_completes_agreement(self, mock_agreement_repo, agreement):
        first, second = agreement.installments
        first.mark_paid(paid_by="cashier", paid_amount=first.installment_amount, payment_date="1403/02/01")

        payment = await PayInstallmentService(mock_agreement_repo).execute(second.id, paid_by="cashier")

        assert payment.agreement_completed is True
        assert agreement.status == AgreementStatus.COMPLETED
        mock_agreement_repo.update_agreement.assert_awaited_once_with(agreement, [second])

    @pytest.mark.asyncio
    async def test_already_paid(self, mock_agreement_repo, agreement):
        first = agreement.installments[0]
        first.mark_paid(paid_by="cashier", paid_amount=first.installment_amount, payment_date="1403/02/01")
        with pytest.raises(InstallmentAlreadyPaidError):
            await PayInstallmentService(mock_agreement_repo).execute(first.id, paid_by="cashier")

    @pytest.mark.asyncio
    async def test_insufficient_payment(self, mock_agreement_repo, agreement):
        first = agreement.installments[0]
        with pytest.raises(InsufficientPaymentError):
            await PayInstallmentService(mock_agreement_repo).execute(first.id, paid_by="cashier", paid_amount=100)
        assert first.is_paid is False
        mock_agreement_repo.update_agreement.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_payment_date(self, mock_agreement_repo, agreement):
        with pytest.raises(InvalidDateError):
            await PayInstallmentService(mock_agreement_repo).execute(
                agreement.installments[0].id, paid_by="cashier", payment_date="yesterday"
            )

    @pytest.mark.asyncio
    async def test_cancelled_agreement(self, mock_agreement_repo, agreement):
        agreement.cancel()
        with pytest.raises(AgreementStateError):
            await PayInstallmentService(mock_agreement_repo).execute(agreement.installments[0].id, paid_by="cashier")

    @pytest.mark.asyncio
    async def test_unknown_installment(self, mock_agreement_repo, agreement):
        with pytest.raises(InstallmentNotFoundError):
            await PayInstallmentService(mock_agreement_repo).execute("missing", paid_by="cashier")


class TestBackfillDueDates:
    @pytest.mark.asyncio
    async def test_only_changed_due_dates_are_written(self, mock_agreement_repo):
        agreement = _agreement(number_of_installments=3)
        agreement.installments[1].due_date = ""
        agreement.installments[2].due_date = "1403/01/01"
        mock_agreement_repo.list_agreements.return_value = [agreement]

        updated = await BackfillDueDatesService(mock_agreement_repo).execute()

        assert updated == 2
        assert [inst.due_date for inst in agreement.installments] == ["1403/02/01", "1403/03/01", "1403/04/01"]
        mock_agreement_repo.update_installments.assert_awaited_once_with(agreement.installments[1:])

    @pytest.mark.asyncio
    async def test_nothing_to_update(self, mock_agreement_repo):
        agreement = _agreement(number_of_installments=2)
        mock_agreement_repo.get_agreement.return_value = agreement

        assert await BackfillDueDatesService(mock_agreement_repo).execute(agreement_id=agreement.id) == 0
        mock_agreement_repo.update_installments.assert_not_awaited()


class TestSendSms:
    @pytest.fixture
    def mock_sms_port(self, mocker):
        port = mocker.AsyncMock(spec=SmsPort)
        port.send_sms.return_value = SmsSendResult(success=True, status_text="ارسال شد")
        return port

    @pytest.mark.asyncio
    async def test_installment_sms_mentions_next_unpaid_installment(self, mock_agreement_repo, mock_sms_port):
        agreement = _agreement(number_of_installments=3)
        agreement.installments[0].mark_paid(paid_by="cashier", paid_amount=900_000, payment_date="1403/02/01")
        mock_agreement_repo.get_agreement.return_value = agreement

        result = await SendInstallmentSmsService(mock_agreement_repo, mock_sms_port).execute(
            agreement_id=agreement.id,
            receptor="09120000000",
            customer_name="علی",
            invoice_code="INV-7",
        )

        assert result.success is True
        sms = mock_sms_port.send_sms.call_args.args[0]
        assert sms.event == SmsEvent.PAYMENT_INSTALLMENT
        assert sms.receptor == "09120000000"
        assert sms.message.startswith("علی گرامی")
        assert "INV-7" in sms.message
        assert sms.metadata["nextInstallmentDate"] == "1403/03/01"
        assert sms.metadata["nextInstallmentAmount"] == "۹۰۰٬۰۰۰"

    @pytest.mark.asyncio
    async def test_order_created_sms(self, mock_sms_port):
        await SendOrderSmsService(mock_sms_port).execute(
            event=SmsEvent.ORDER_CREATED,
            receptor="09120000000",
            customer_name="مریم",
            order_id="order-9",
        )
        sms = mock_sms_port.send_sms.call_args.args[0]
        assert sms.metadata == {"orderCode": "order-9"}

    @pytest.mark.asyncio
    async def test_manual_sms_requires_text(self, mock_sms_port):
        with pytest.raises(ValueError):
            await SendOrderSmsService(mock_sms_port).execute(event=SmsEvent.MANUAL, receptor="09120000000")
        mock_sms_port.send_sms.assert_not_awaited()
