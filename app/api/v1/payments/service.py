"""Payments service: cash payments and fee adjustments. Each is one atomic ledger write."""

import logging
from typing import Any, Dict, Optional

from fastapi import status

from app.core.config import settings
from app.core.enums import AdjustmentType, NotificationType, UserRole
from app.core.exceptions import NotFoundError, ServiceError
from app.db.store import DocumentStore
from app.fees.ledger import credit_term, debit_term, get_terms, to_number
from app.fees.transactions import (
    adjustment_record,
    bursar_activity_record,
    cash_payment_record,
    format_amount,
    student_display_name,
)
from app.fees.updates import AtomicUpdate

from .schemas import (
    CashPaymentCreate,
    CashPaymentResponse,
    FeeAdjustmentCreate,
    FeeAdjustmentResponse,
    TransactionListResponse,
)

logger = logging.getLogger(__name__)


async def _load_student_term(store: DocumentStore, student_id: str, term_key: str):
    student = await store.get(f"students/{student_id}")
    if not isinstance(student, dict):
        raise NotFoundError("Student not found")
    terms = get_terms(student)
    if term_key not in terms:
        raise ServiceError("Invalid term key", status.HTTP_400_BAD_REQUEST)
    return student, terms


async def process_cash_payment(store: DocumentStore, payload: CashPaymentCreate) -> CashPaymentResponse:
    student, terms = await _load_student_term(store, payload.student_id, payload.term_key)
    terms = credit_term(terms, payload.term_key, payload.amount)

    builder = AtomicUpdate()
    new_balance = builder.set_student_terms(payload.student_id, student, terms)
    transaction = cash_payment_record(
        payload.student_id,
        student,
        payload.amount,
        payload.term_key,
        payload.bursar_id,
        payload.bursar_username,
        now=builder.now,
    )
    builder.add_transaction(transaction)
    builder.add_bursar_activity(bursar_activity_record(transaction, now=builder.now))

    amount = format_amount(payload.amount)
    receipt = transaction["receiptNumber"]
    builder.notify(
        payload.student_id,
        UserRole.STUDENT,
        "Payment Received",
        f"Cash payment of {amount} processed. Receipt: {receipt}",
        NotificationType.SUCCESS,
    )
    builder.notify(
        settings.admin_notification_user_id,
        UserRole.ADMIN,
        "Cash Payment Processed",
        f"Bursar {payload.bursar_username} processed {amount} payment for {student_display_name(student)}",
        NotificationType.INFO,
    )
    await builder.commit(store)
    logger.info(
        "Cash payment %s: %s for student %s term %s by %s",
        receipt, amount, payload.student_id, payload.term_key, payload.bursar_username,
    )
    return CashPaymentResponse(
        receipt_number=receipt,
        new_balance=to_number(new_balance),
        transaction_id=transaction["id"],
    )


async def apply_fee_adjustment(store: DocumentStore, payload: FeeAdjustmentCreate) -> FeeAdjustmentResponse:
    """Debit raises the term fee, credit raises the term paid amount."""
    student, terms = await _load_student_term(store, payload.student_id, payload.term_key)
    if payload.adjustment_type == AdjustmentType.CREDIT:
        terms = credit_term(terms, payload.term_key, payload.adjustment_amount)
    else:
        terms = debit_term(terms, payload.term_key, payload.adjustment_amount)

    builder = AtomicUpdate()
    new_balance = builder.set_student_terms(payload.student_id, student, terms)
    transaction = adjustment_record(
        payload.student_id,
        student,
        payload.adjustment_amount,
        payload.term_key,
        payload.adjustment_type,
        payload.reason,
        payload.bursar_id,
        payload.bursar_username,
        now=builder.now,
    )
    builder.add_transaction(transaction)

    kind = payload.adjustment_type.value
    amount = format_amount(payload.adjustment_amount)
    builder.notify(
        payload.student_id,
        UserRole.STUDENT,
        "Fee Adjustment Applied",
        f"A {kind} adjustment of {amount} has been applied to your {payload.term_key.replace('_', ' ')} fees. "
        f"Reason: {payload.reason}",
        NotificationType.SUCCESS if payload.adjustment_type == AdjustmentType.CREDIT else NotificationType.WARNING,
    )
    builder.notify(
        settings.admin_notification_user_id,
        UserRole.ADMIN,
        "Fee Adjustment Applied",
        f"Bursar {payload.bursar_username} applied a {kind} adjustment of {amount} for {student_display_name(student)}",
        NotificationType.INFO,
    )
    await builder.commit(store)
    logger.info("Fee adjustment (%s %s) for student %s term %s", kind, amount, payload.student_id, payload.term_key)
    return FeeAdjustmentResponse(
        new_balance=to_number(new_balance),
        transaction_id=transaction["id"],
    )


async def list_transactions(
    store: DocumentStore,
    student_id: Optional[str] = None,
) -> TransactionListResponse:
    if student_id:
        records: Dict[str, Any] = await store.find("transactions", "studentId", student_id)
    else:
        records = await store.get("transactions") or {}
    rows = [r for r in records.values() if isinstance(r, dict)]
    rows.sort(key=lambda r: r.get("createdAt") or "", reverse=True)
    return TransactionListResponse(transactions=rows)
