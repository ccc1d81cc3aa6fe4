from typing import Optional

from domain.entities import SmsEvent, SmsMessage, SmsSendResult
from domain.exceptions import AgreementNotFoundError
from domain.interfaces import AgreementRepository, LoggingPort, SmsPort, bind_logger
from domain.services.sms_messages import (
    cash_payment_message,
    installment_payment_message,
    manual_message,
    order_created_message,
)


class SendInstallmentSmsService:
    """Sends the "installment sale registered" SMS for an agreement."""

    def __init__(
        self,
        agreement_repo: AgreementRepository,
        sms_port: SmsPort,
        logging_port: Optional[LoggingPort] = None
    ):
        self.agreement_repo = agreement_repo
        self.sms_port = sms_port
        self.logging_port = logging_port

    async def execute(
        self,
        agreement_id: str,
        receptor: str,
        customer_name: str,
        invoice_code: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> SmsSendResult:
        """
        Args:
            agreement_id: Agreement the message is about
            receptor: Customer mobile number
            customer_name: Name used in the greeting
            invoice_code: Invoice number; the order id is used when omitted

        Returns:
            SmsSendResult; provider failures come back as success=False
        """
        log = bind_logger(
            self.logging_port,
            request_id=request_id or "unknown",
            agreement_id=agreement_id,
            step="installment_sms"
        )
        agreement = await self.agreement_repo.get_agreement(agreement_id)
        if agreement is None:
            raise AgreementNotFoundError(f"agreement {agreement_id} not found")

        next_installment = agreement.next_unpaid_installment()
        template = installment_payment_message(
            customer_name=customer_name,
            invoice_code=invoice_code or agreement.order_id,
            down_payment=agreement.down_payment,
            next_installment_amount=next_installment.installment_amount if next_installment else None,
            next_due_date=next_installment.due_date if next_installment else None,
        )
        sms = SmsMessage(
            event=SmsEvent.PAYMENT_INSTALLMENT,
            receptor=receptor,
            message=template["message"],
            order_id=agreement.order_id,
            customer_id=agreement.customer_id,
            customer_name=customer_name,
            agreement_id=agreement.id,
            metadata=template["metadata"],
        )
        result = await self.sms_port.send_sms(sms, request_id=request_id)
        log.info("installment_sms_processed", success=result.success, status_text=result.status_text)
        return result


class SendOrderSmsService:
    """Order notifications that do not need an agreement: order created, cash payment, manual text."""

    def __init__(self, sms_port: SmsPort, logging_port: Optional[LoggingPort] = None):
        self.sms_port = sms_port
        self.logging_port = logging_port

    async def execute(
        self,
        event: SmsEvent,
        receptor: str,
        customer_name: Optional[str] = None,
        order_id: Optional[str] = None,
        invoice_code: Optional[str] = None,
        total_amount: Optional[int] = None,
        text: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> SmsSendResult:
        """
        Raises:
            ValueError: required template fields are missing for the event
        """
        log = bind_logger(self.logging_port, request_id=request_id or "unknown", order_id=order_id, step="order_sms")

        if event is SmsEvent.ORDER_CREATED:
            if not customer_name or not (invoice_code or order_id):
                raise ValueError("customer_name and invoice_code are required for order_created")
            template = order_created_message(customer_name, invoice_code or order_id)
        elif event is SmsEvent.PAYMENT_CASH:
            if not customer_name:
                raise ValueError("customer_name is required for payment_cash")
            template = cash_payment_message(customer_name, total_amount)
        elif event is SmsEvent.MANUAL:
            if not text:
                raise ValueError("text is required for manual messages")
            template = manual_message(text, customer_name)
        else:
            raise ValueError(f"use the agreement endpoint for {event.value}")

        sms = SmsMessage(
            event=event,
            receptor=receptor,
            message=template["message"],
            order_id=order_id,
            customer_name=customer_name,
            metadata=template["metadata"],
        )
        result = await self.sms_port.send_sms(sms, request_id=request_id)
        log.info("order_sms_processed", sms_event=event.value, success=result.success)
        return result
