"""
Gateway payment reconciliation.

Two drivers report a gateway payment's outcome: the client's status poll and
the gateway's webhook push. Both call `apply_gateway_result`, which moves a
transaction out of pending_zb_confirmation / pending_payment at most once:
the settlement is committed with the precondition that the transaction
status is still the one that was read, so of two racing drivers only one can
credit the ledger. The loser re-reads and reports the stored status.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from app.core.config import settings
from app.core.enums import (
    PENDING_GATEWAY_STATUSES,
    NotificationType,
    TransactionStatus,
    UserRole,
)
from app.core.exceptions import ConflictError, NotFoundError, PreconditionFailed
from app.db.store import DocumentStore
from app.fees.ledger import credit_term, get_terms
from app.fees.transactions import format_amount, student_display_name
from app.fees.updates import AtomicUpdate

from .zbpay import FAILURE_STATUSES, SUCCESS_STATUSES

logger = logging.getLogger(__name__)

SOURCE_POLL = "poll"
SOURCE_WEBHOOK = "webhook"

_METADATA_FIELD = {
    SOURCE_POLL: "zbPayStatusCheck",
    SOURCE_WEBHOOK: "webhookData",
}

MAX_SETTLEMENT_ATTEMPTS = 3


@dataclass
class SettlementResult:
    transaction_id: str
    status: str
    applied: bool
    order_reference: Optional[str] = None
    amount: Any = None
    gateway_status: Optional[str] = None


def is_terminal(status: Optional[str]) -> bool:
    return status not in PENDING_GATEWAY_STATUSES


def classify(gateway_status: Optional[str]) -> Optional[str]:
    """'success', 'failure', or None while the gateway still reports a pending payment."""
    normalized = (gateway_status or "").strip().upper()
    if normalized in SUCCESS_STATUSES:
        return "success"
    if normalized in FAILURE_STATUSES:
        return "failure"
    return None


def _result(transaction: Mapping[str, Any], status: str, applied: bool, gateway_status: Optional[str]) -> SettlementResult:
    return SettlementResult(
        transaction_id=transaction["id"],
        status=status,
        applied=applied,
        order_reference=transaction.get("orderReference"),
        amount=transaction.get("amount"),
        gateway_status=gateway_status,
    )


async def _build_settlement(
    store: DocumentStore,
    transaction: Mapping[str, Any],
    outcome: Optional[str],
    source: str,
    gateway_payload: Optional[Dict[str, Any]],
) -> tuple:
    tx_id = transaction["id"]
    observed = transaction["status"]
    amount = transaction.get("amount")
    order_ref = transaction.get("orderReference")
    admin_id = settings.admin_notification_user_id

    builder = AtomicUpdate()
    builder.expect_value(f"transactions/{tx_id}/status", observed)
    builder.set(f"transactions/{tx_id}/{_METADATA_FIELD[source]}", gateway_payload or {})
    builder.set(f"transactions/{tx_id}/updatedAt", builder.now)

    new_status = observed
    applied = False

    if outcome == "success":
        student_id = transaction.get("studentId")
        term_key = transaction.get("termKey")
        student = await store.get(f"students/{student_id}")
        if student is None:
            logger.warning("Gateway payment %s settled but student %s no longer exists", tx_id, student_id)
            new_status = TransactionStatus.ZB_PAYMENT_SUCCESSFUL_STUDENT_MISSING.value
            builder.notify(
                admin_id, UserRole.ADMIN, "Payment Processed (Student Missing)",
                f"ZbPay payment of {format_amount(amount)} completed, but student record {student_id} was not found. Ref: {order_ref}",
                NotificationType.WARNING,
            )
        elif term_key not in get_terms(student):
            logger.warning("Gateway payment %s settled but term %r missing for student %s", tx_id, term_key, student_id)
            new_status = TransactionStatus.ZB_PAYMENT_SUCCESSFUL_TERM_ISSUE.value
            builder.notify(
                admin_id, UserRole.ADMIN, "Payment Processed (Term Issue)",
                f"ZbPay payment of {format_amount(amount)} for {student_display_name(student)} completed, "
                f"but term '{term_key}' was not found. Ref: {order_ref}",
                NotificationType.WARNING,
            )
        else:
            terms = credit_term(get_terms(student), term_key, amount)
            builder.set_student_terms(student_id, student, terms)
            new_status = TransactionStatus.ZB_PAYMENT_SUCCESSFUL.value
            applied = True
            builder.notify(
                student_id, UserRole.STUDENT, "Payment Successful",
                f"ZbPay payment of {format_amount(amount)} completed successfully.",
                NotificationType.SUCCESS,
            )
            builder.notify(
                admin_id, UserRole.ADMIN, "ZbPay Payment Successful",
                f"ZbPay payment of {format_amount(amount)} for {student_display_name(student)} completed. Ref: {order_ref}",
                NotificationType.SUCCESS,
            )
    elif outcome == "failure":
        new_status = TransactionStatus.ZB_PAYMENT_FAILED.value
        builder.notify(
            transaction.get("studentId"), UserRole.STUDENT, "Payment Failed",
            f"Your ZbPay payment for {format_amount(amount)} failed. Please try again.",
            NotificationType.ERROR,
        )

    builder.set(f"transactions/{tx_id}/status", new_status)
    if new_status != observed:
        builder.set(f"transactions/{tx_id}/settledBy", source)
    return builder, new_status, applied


async def apply_gateway_result(
    store: DocumentStore,
    transaction_id: str,
    gateway_status: Optional[str],
    *,
    source: str,
    gateway_payload: Optional[Dict[str, Any]] = None,
) -> SettlementResult:
    """Apply one gateway report to a transaction. Terminal transactions are left untouched."""
    outcome = classify(gateway_status)
    for attempt in range(1, MAX_SETTLEMENT_ATTEMPTS + 1):
        transaction = await store.get(f"transactions/{transaction_id}")
        if transaction is None:
            raise NotFoundError(f"Transaction not found: {transaction_id}")
        observed = transaction.get("status")
        if is_terminal(observed):
            logger.info("Transaction %s already %s; %s result ignored", transaction_id, observed, source)
            return _result(transaction, observed, False, gateway_status)

        builder, new_status, applied = await _build_settlement(
            store, transaction, outcome, source, gateway_payload
        )
        try:
            await builder.commit(store)
        except PreconditionFailed:
            logger.info(
                "Settlement of %s via %s lost a race (attempt %d), re-reading",
                transaction_id, source, attempt,
            )
            continue
        if new_status != observed:
            logger.info("Transaction %s %s -> %s via %s", transaction_id, observed, new_status, source)
        return _result(transaction, new_status, applied, gateway_status)

    raise ConflictError("Transaction is being updated concurrently, please retry")
