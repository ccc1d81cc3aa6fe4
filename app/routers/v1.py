from fastapi import APIRouter, Depends, HTTPException, status, Header, Query
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from application.service.agreement_queries import (
    CustomerAgreementsService,
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
from app.schemas.agreement_schema import (
    AgreementCreate,
    AgreementResponse,
    ApproveRequest,
    BackfillRequest,
    BackfillResponse,
    InstallmentResponse,
    InstallmentSmsRequest,
    OrderSmsRequest,
    PayInstallmentRequest,
    PaymentResponse,
    SchedulePreviewRequest,
    ScheduleResponse,
    SmsResponse,
    UnpaidInstallmentResponse,
)
from domain.config import get_sms_config
from domain.entities import AgreementStatus
from domain.exceptions import (
    AghsatError,
    AgreementNotFoundError,
    AgreementStateError,
    InstallmentAlreadyPaidError,
    InstallmentNotFoundError,
    InsufficientPaymentError,
    InvalidAgreementTermsError,
    InvalidDateError,
)
from infrastructure.clients import KavenegarClient, SmsService
from infrastructure.db.database import get_db_session
from infrastructure.db.repositories.agreement_repo_sqlalchemy import AgreementRepoSqlalchemy
from infrastructure.logging.logging_adapter import LoggingAdapter
from infrastructure.metrics.metrics_adapter import MetricsAdapter
import uuid


router = APIRouter(prefix="/v1")

# (status code, error code) per domain exception
ERROR_RESPONSES = {
    AgreementNotFoundError: (status.HTTP_404_NOT_FOUND, "agreement_not_found"),
    InstallmentNotFoundError: (status.HTTP_404_NOT_FOUND, "installment_not_found"),
    AgreementStateError: (status.HTTP_409_CONFLICT, "invalid_agreement_state"),
    InstallmentAlreadyPaidError: (status.HTTP_409_CONFLICT, "installment_already_paid"),
    InvalidAgreementTermsError: (status.HTTP_422_UNPROCESSABLE_ENTITY, "invalid_agreement_terms"),
    InsufficientPaymentError: (status.HTTP_422_UNPROCESSABLE_ENTITY, "insufficient_payment"),
    InvalidDateError: (status.HTTP_422_UNPROCESSABLE_ENTITY, "invalid_date"),
}


def to_http_error(error: AghsatError) -> HTTPException:
    status_code, code = ERROR_RESPONSES.get(type(error), (status.HTTP_400_BAD_REQUEST, "domain_error"))
    return HTTPException(status_code=status_code, detail={"error": code, "message": str(error)})


def request_id_header(
    x_request_id: Optional[str] = Header(
        None,
        alias="X-Request-ID",
        description="Request ID for tracing. Generated when missing.",
        examples=["550e8400-e29b-41d4-a716-446655440000"]
    )
) -> str:
    return x_request_id or str(uuid.uuid4())


def build_sms_client() -> KavenegarClient:
    """KavenegarClient from SmsConfig; sending fails per message when the key is missing."""
    sms_config = get_sms_config()
    return KavenegarClient(
        api_key=sms_config.api_key,
        sender=sms_config.sender,
        base_url=sms_config.base_url,
        timeout=sms_config.timeout_seconds,
        max_retries=sms_config.max_retries,
    )


@router.post("/schedule/preview")
async def preview_schedule(
    payload: SchedulePreviewRequest,
    request_id: str = Depends(request_id_header)
) -> ScheduleResponse:
    """
    Installment calculator.

    Computes the full amortization schedule without saving anything. `payment_basis`
    chooses whether rows split the rounded installment (what gets stored on an
    agreement) or the exact annuity amount.
    """
    srv = PreviewScheduleService(metrics_port=MetricsAdapter(), logging_port=LoggingAdapter())
    try:
        schedule = await srv.execute(
            total_amount=payload.total_amount,
            down_payment=payload.down_payment,
            number_of_installments=payload.number_of_installments,
            annual_rate=payload.annual_rate,
            agreement_date=payload.agreement_date,
            payment_basis=payload.payment_basis,
            request_id=request_id
        )
    except AghsatError as e:
        raise to_http_error(e)
    return ScheduleResponse.from_domain(schedule)


@router.post("/agreements", status_code=status.HTTP_201_CREATED)
async def create_agreement(
    payload: AgreementCreate,
    request_id: str = Depends(request_id_header),
    db: AsyncSession = Depends(get_db_session)
) -> AgreementResponse:
    """
    Create an installment agreement for an order.

    The agreement and all of its installments are saved in one transaction.
    """
    srv = CreateAgreementService(
        agreement_repo=AgreementRepoSqlalchemy(db),
        metrics_port=MetricsAdapter(),
        logging_port=LoggingAdapter()
    )
    try:
        agreement = await srv.execute(
            order_id=payload.order_id,
            customer_id=payload.customer_id,
            total_amount=payload.total_amount,
            down_payment=payload.down_payment,
            number_of_installments=payload.number_of_installments,
            annual_rate=payload.annual_rate,
            guarantee_type=payload.guarantee_type,
            agreement_date=payload.agreement_date,
            created_by=payload.created_by,
            request_id=request_id
        )
    except AghsatError as e:
        raise to_http_error(e)
    return AgreementResponse.from_domain(agreement)


@router.get("/agreements")
async def list_agreements(
    agreement_status: Optional[AgreementStatus] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db_session)
) -> list[AgreementResponse]:
    """List agreements, newest first, optionally filtered by status."""
    srv = ListAgreementsService(AgreementRepoSqlalchemy(db))
    agreements = await srv.execute(agreement_status)
    return [AgreementResponse.from_domain(a) for a in agreements]


@router.post("/agreements/backfill-due-dates")
async def backfill_due_dates(
    payload: BackfillRequest,
    request_id: str = Depends(request_id_header),
    db: AsyncSession = Depends(get_db_session)
) -> BackfillResponse:
    """Recompute installment due dates from the agreement date (all agreements when no id is given)."""
    srv = BackfillDueDatesService(AgreementRepoSqlalchemy(db), logging_port=LoggingAdapter())
    try:
        updated = await srv.execute(agreement_id=payload.agreement_id, request_id=request_id)
    except AghsatError as e:
        raise to_http_error(e)
    return BackfillResponse(updated=updated)


@router.get("/agreements/{agreement_id}")
async def get_agreement(agreement_id: str, db: AsyncSession = Depends(get_db_session)) -> AgreementResponse:
    """
    Get an agreement with its installments.

    Installment `status` is derived on read: paid, overdue (unpaid and past due) or pending.
    """
    srv = GetAgreementService(AgreementRepoSqlalchemy(db))
    try:
        agreement = await srv.execute(agreement_id)
    except AghsatError as e:
        raise to_http_error(e)
    return AgreementResponse.from_domain(agreement)


@router.get("/orders/{order_id}/agreement")
async def get_order_agreement(order_id: str, db: AsyncSession = Depends(get_db_session)) -> AgreementResponse:
    srv = GetOrderAgreementService(AgreementRepoSqlalchemy(db))
    try:
        agreement = await srv.execute(order_id)
    except AghsatError as e:
        raise to_http_error(e)
    return AgreementResponse.from_domain(agreement)


@router.get("/customers/{customer_id}/agreements")
async def customer_agreements(customer_id: str, db: AsyncSession = Depends(get_db_session)) -> list[AgreementResponse]:
    srv = CustomerAgreementsService(AgreementRepoSqlalchemy(db))
    agreements = await srv.execute(customer_id)
    return [AgreementResponse.from_domain(a) for a in agreements]


@router.get("/customers/{customer_id}/unpaid-installments")
async def unpaid_installments(
    customer_id: str,
    db: AsyncSession = Depends(get_db_session)
) -> list[UnpaidInstallmentResponse]:
    """Unpaid installments of a customer across live agreements, earliest due date first."""
    srv = UnpaidInstallmentsService(AgreementRepoSqlalchemy(db))
    unpaid = await srv.execute(customer_id)
    return [
        UnpaidInstallmentResponse(order_id=item.order_id, **InstallmentResponse.from_domain(item.installment).model_dump())
        for item in unpaid
    ]


@router.post("/agreements/{agreement_id}/approve")
async def approve_agreement(
    agreement_id: str,
    payload: ApproveRequest,
    request_id: str = Depends(request_id_header),
    db: AsyncSession = Depends(get_db_session)
) -> AgreementResponse:
    srv = ApproveAgreementService(AgreementRepoSqlalchemy(db), logging_port=LoggingAdapter())
    try:
        agreement = await srv.execute(agreement_id, approved_by=payload.approved_by, request_id=request_id)
    except AghsatError as e:
        raise to_http_error(e)
    return AgreementResponse.from_domain(agreement)


@router.post("/agreements/{agreement_id}/cancel")
async def cancel_agreement(
    agreement_id: str,
    request_id: str = Depends(request_id_header),
    db: AsyncSession = Depends(get_db_session)
) -> AgreementResponse:
    srv = CancelAgreementService(AgreementRepoSqlalchemy(db), logging_port=LoggingAdapter())
    try:
        agreement = await srv.execute(agreement_id, request_id=request_id)
    except AghsatError as e:
        raise to_http_error(e)
    return AgreementResponse.from_domain(agreement)


@router.post("/installments/{installment_id}/pay")
async def pay_installment(
    installment_id: str,
    payload: PayInstallmentRequest,
    request_id: str = Depends(request_id_header),
    db: AsyncSession = Depends(get_db_session)
) -> PaymentResponse:
    """
    Mark an installment as paid.

    When it was the last unpaid installment the agreement becomes "completed"
    in the same transaction.
    """
    srv = PayInstallmentService(
        AgreementRepoSqlalchemy(db),
        metrics_port=MetricsAdapter(),
        logging_port=LoggingAdapter()
    )
    try:
        payment = await srv.execute(
            installment_id=installment_id,
            paid_by=payload.paid_by,
            paid_amount=payload.paid_amount,
            payment_date=payload.payment_date,
            notes=payload.notes,
            request_id=request_id
        )
    except AghsatError as e:
        raise to_http_error(e)
    return PaymentResponse(
        installment=InstallmentResponse.from_domain(payment.installment),
        agreement_status=payment.agreement.status.value,
        agreement_completed=payment.agreement_completed
    )


@router.post("/agreements/{agreement_id}/sms")
async def send_installment_sms(
    agreement_id: str,
    payload: InstallmentSmsRequest,
    request_id: str = Depends(request_id_header),
    db: AsyncSession = Depends(get_db_session)
) -> SmsResponse:
    """
    Send the installment-sale SMS (down payment and next unpaid installment).

    Provider failures are reported with `success=false`; they never change the agreement.
    """
    sms_config = get_sms_config()
    async with build_sms_client() as sms_client:
        srv = SendInstallmentSmsService(
            AgreementRepoSqlalchemy(db),
            sms_port=SmsService(sms_client, db_session=db, metrics_port=MetricsAdapter(), enabled=sms_config.enabled),
            logging_port=LoggingAdapter()
        )
        try:
            result = await srv.execute(
                agreement_id=agreement_id,
                receptor=payload.receptor,
                customer_name=payload.customer_name,
                invoice_code=payload.invoice_code,
                request_id=request_id
            )
        except AghsatError as e:
            raise to_http_error(e)
    return SmsResponse.from_domain(result)


@router.post("/sms")
async def send_order_sms(
    payload: OrderSmsRequest,
    request_id: str = Depends(request_id_header),
    db: AsyncSession = Depends(get_db_session)
) -> SmsResponse:
    """Send an order-created, cash-payment or manual SMS."""
    sms_config = get_sms_config()
    async with build_sms_client() as sms_client:
        srv = SendOrderSmsService(
            sms_port=SmsService(sms_client, db_session=db, metrics_port=MetricsAdapter(), enabled=sms_config.enabled),
            logging_port=LoggingAdapter()
        )
        try:
            result = await srv.execute(
                event=payload.event,
                receptor=payload.receptor,
                customer_name=payload.customer_name,
                order_id=payload.order_id,
                invoice_code=payload.invoice_code,
                total_amount=payload.total_amount,
                text=payload.text,
                request_id=request_id
            )
        except ValueError as e:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail={"error": "invalid_sms_request", "message": str(e)}
            )
    return SmsResponse.from_domain(result)
