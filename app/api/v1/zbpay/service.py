"""
ZbPay service.

initiate   records a pending gateway transaction, then asks ZbPay for a payment URL
status     client poll: asks ZbPay for the order status and settles the transaction
webhook    ZbPay push: settles the transaction located by order reference

Settlement for both drivers goes through app.payments.reconciliation.
"""

import logging
from typing import Any, Dict

from fastapi import status

from app.core.config import settings
from app.core.enums import TransactionStatus
from app.core.exceptions import NotFoundError, ServiceError
from app.db.store import DocumentStore
from app.fees.ledger import get_terms, to_decimal, to_number
from app.fees.school_config import load_currency_code
from app.fees.transactions import gateway_payment_record, student_display_name, utcnow_iso
from app.fees.updates import AtomicUpdate
from app.payments.reconciliation import (
    SOURCE_POLL,
    SOURCE_WEBHOOK,
    apply_gateway_result,
    is_terminal,
)
from app.payments.zbpay import ZbPayClient, ZbPayError, build_initiate_payload

from .schemas import (
    PaymentInitiate,
    PaymentInitiateResponse,
    PaymentStatusResponse,
    WebhookPayload,
    WebhookResponse,
)

logger = logging.getLogger(__name__)


async def initiate_payment(
    store: DocumentStore,
    gateway: ZbPayClient,
    payload: PaymentInitiate,
) -> PaymentInitiateResponse:
    student = await store.get(f"students/{payload.student_id}")
    if not isinstance(student, dict):
        raise NotFoundError("Student not found")
    if payload.term_key not in get_terms(student):
        raise ServiceError("Invalid term key", status.HTTP_400_BAD_REQUEST)
    currency_code = await load_currency_code(store)

    transaction = gateway_payment_record(payload.student_id, student, payload.amount, payload.term_key)
    tx_id = transaction["id"]
    order_ref = transaction["orderReference"]
    builder = AtomicUpdate(now=transaction["createdAt"])
    builder.add_transaction(transaction)
    await builder.commit(store)

    request_body = build_initiate_payload(
        amount=to_number(payload.amount),
        currency_code=currency_code,
        return_url=payload.return_url,
        result_url=payload.result_url,
        order_reference=order_ref,
        item_name=f"Fees for {student_display_name(student)}",
    )
    try:
        response = await gateway.initiate(request_body)
    except ZbPayError as e:
        logger.warning("ZbPay initiation failed for %s (%s): %s", tx_id, order_ref, e.message)
        await store.update(
            {
                f"transactions/{tx_id}/status": TransactionStatus.ZB_INITIATION_FAILED.value,
                f"transactions/{tx_id}/zbPayResponse": e.payload or {"error": e.message},
                f"transactions/{tx_id}/updatedAt": utcnow_iso(),
            }
        )
        raise

    payment_url = response.get("paymentUrl")
    await store.update(
        {
            f"transactions/{tx_id}/status": TransactionStatus.PENDING_PAYMENT.value,
            f"transactions/{tx_id}/paymentUrl": payment_url,
            f"transactions/{tx_id}/zbPayTransactionId": response.get("transactionId") or response.get("reference"),
            f"transactions/{tx_id}/zbPayResponse": response,
            f"transactions/{tx_id}/updatedAt": utcnow_iso(),
        },
        expect={f"transactions/{tx_id}/status": TransactionStatus.PENDING_ZB_CONFIRMATION.value},
    )
    logger.info("ZbPay payment %s initiated for student %s: %s", order_ref, payload.student_id, payment_url)
    return PaymentInitiateResponse(
        payment_url=payment_url,
        order_reference=order_ref,
        transaction_id=tx_id,
    )


async def check_payment_status(
    store: DocumentStore,
    gateway: ZbPayClient,
    order_reference: str,
    transaction_id: str,
) -> PaymentStatusResponse:
    transaction = await store.get(f"transactions/{transaction_id}")
    if not isinstance(transaction, dict):
        raise NotFoundError("Transaction not found in database for provided txId")
    if transaction.get("orderReference") != order_reference:
        raise ServiceError("Order reference does not match transaction", status.HTTP_400_BAD_REQUEST)

    current = transaction.get("status")
    if is_terminal(current):
        last_check = transaction.get("zbPayStatusCheck") or {}
        return PaymentStatusResponse(
            status=current,
            order_reference=order_reference,
            transaction_id=transaction_id,
            amount=transaction.get("amount"),
            zb_pay_status=last_check.get("status") or "N/A",
        )

    gateway_data = await gateway.check_status(order_reference)
    gateway_status = gateway_data.get("status")
    result = await apply_gateway_result(
        store,
        transaction_id,
        gateway_status,
        source=SOURCE_POLL,
        gateway_payload=gateway_data,
    )
    return PaymentStatusResponse(
        status=result.status,
        order_reference=result.order_reference,
        transaction_id=result.transaction_id,
        amount=result.amount,
        zb_pay_status=gateway_status or "N/A",
    )


async def handle_webhook(
    store: DocumentStore,
    gateway: ZbPayClient,
    payload: WebhookPayload,
) -> WebhookResponse:
    matches = await store.find("transactions", "orderReference", payload.order_reference)
    if not matches:
        raise NotFoundError(f"Transaction not found for orderReference: {payload.order_reference}")
    transaction = next(iter(matches.values()))
    tx_id = transaction["id"]

    if is_terminal(transaction.get("status")):
        logger.info("Webhook for %s: transaction %s already %s", payload.order_reference, tx_id, transaction["status"])
        return WebhookResponse(message="Already processed", transaction_id=tx_id, status=transaction["status"])

    webhook_data: Dict[str, Any] = payload.model_dump(by_alias=True, exclude_none=True)
    gateway_status = payload.status
    if settings.zbpay_verify_webhooks:
        confirmed = await gateway.check_status(payload.order_reference)
        if confirmed.get("status") != gateway_status:
            logger.warning(
                "Webhook status %r for %s differs from gateway status %r; using gateway status",
                gateway_status, payload.order_reference, confirmed.get("status"),
            )
        gateway_status = confirmed.get("status")
        webhook_data["verifiedStatus"] = gateway_status

    if payload.amount is not None and to_decimal(payload.amount) != to_decimal(transaction.get("amount")):
        logger.warning(
            "Webhook amount %s for %s differs from recorded amount %s; recorded amount is credited",
            payload.amount, payload.order_reference, transaction.get("amount"),
        )

    result = await apply_gateway_result(
        store,
        tx_id,
        gateway_status,
        source=SOURCE_WEBHOOK,
        gateway_payload=webhook_data,
    )
    return WebhookResponse(
        message="Webhook processed successfully",
        transaction_id=result.transaction_id,
        status=result.status,
    )
