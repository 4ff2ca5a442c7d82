"""
Transaction recorder: immutable records for every balance-affecting event,
plus the identifiers printed on receipts and sent to the payment gateway.

Formats:
    student id       MHS-<12 uppercase hex>
    transaction id   txn-<uuid4 hex>
    receipt number   RCT-<yymmdd>-<6 uppercase alphanumeric>
    order reference  ORDER-<uuid4 hex, uppercase>
"""

import secrets
import string
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Tuple

from app.core.enums import (
    AdjustmentType,
    NotificationType,
    TransactionStatus,
    TransactionType,
    UserRole,
)

from .ledger import to_number


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex}"


def generate_student_id() -> str:
    return f"MHS-{uuid.uuid4().hex[:12].upper()}"


def generate_receipt_number(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    alphabet = string.ascii_uppercase + string.digits
    random_part = "".join(secrets.choice(alphabet) for _ in range(6))
    return f"RCT-{now:%y%m%d}-{random_part}"


def generate_order_reference() -> str:
    return f"ORDER-{uuid.uuid4().hex.upper()}"


def student_display_name(student: Optional[Mapping[str, Any]]) -> str:
    student = student or {}
    return f"{student.get('name', '')} {student.get('surname', '')}".strip()


def _base_record(
    transaction_id: str,
    student_id: str,
    student: Mapping[str, Any],
    amount: Any,
    tx_type: TransactionType,
    tx_status: TransactionStatus,
    term_key: Optional[str],
    now: str,
) -> Dict[str, Any]:
    return {
        "id": transaction_id,
        "studentId": student_id,
        "studentName": student_display_name(student),
        "amount": to_number(amount),
        "type": tx_type.value,
        "status": tx_status.value,
        "termKey": term_key,
        "createdAt": now,
        "updatedAt": now,
    }


def cash_payment_record(
    student_id: str,
    student: Mapping[str, Any],
    amount: Any,
    term_key: str,
    bursar_id: str,
    bursar_username: str,
    now: Optional[str] = None,
) -> Dict[str, Any]:
    now = now or utcnow_iso()
    record = _base_record(
        new_id("txn"), student_id, student, amount,
        TransactionType.CASH, TransactionStatus.COMPLETED, term_key, now,
    )
    record.update(
        receiptNumber=generate_receipt_number(),
        bursarId=bursar_id,
        bursarUsername=bursar_username,
    )
    return record


def adjustment_record(
    student_id: str,
    student: Mapping[str, Any],
    amount: Any,
    term_key: str,
    adjustment_type: AdjustmentType,
    reason: str,
    bursar_id: str,
    bursar_username: str,
    now: Optional[str] = None,
) -> Dict[str, Any]:
    now = now or utcnow_iso()
    record = _base_record(
        new_id("txn"), student_id, student, amount,
        TransactionType.ADJUSTMENT, TransactionStatus.COMPLETED, term_key, now,
    )
    record.update(
        adjustmentType=AdjustmentType(adjustment_type).value,
        reason=reason,
        bursarId=bursar_id,
        bursarUsername=bursar_username,
    )
    return record


def gateway_payment_record(
    student_id: str,
    student: Mapping[str, Any],
    amount: Any,
    term_key: str,
    now: Optional[str] = None,
) -> Dict[str, Any]:
    """New gateway payment, awaiting the gateway's answer to initiation."""
    now = now or utcnow_iso()
    record = _base_record(
        new_id("txn"), student_id, student, amount,
        TransactionType.GATEWAY, TransactionStatus.PENDING_ZB_CONFIRMATION, term_key, now,
    )
    record.update(
        orderReference=generate_order_reference(),
        zbPayTransactionId=None,
    )
    return record


def bursar_activity_record(
    transaction: Mapping[str, Any],
    now: Optional[str] = None,
) -> Dict[str, Any]:
    return {
        "id": new_id("activity"),
        "bursarId": transaction.get("bursarId"),
        "bursarUsername": transaction.get("bursarUsername"),
        "studentId": transaction.get("studentId"),
        "studentName": transaction.get("studentName"),
        "amount": transaction.get("amount"),
        "termKey": transaction.get("termKey"),
        "receiptNumber": transaction.get("receiptNumber"),
        "transactionId": transaction.get("id"),
        "createdAt": now or utcnow_iso(),
    }


def notification_record(
    user_id: str,
    user_role: UserRole,
    title: str,
    message: str,
    notification_type: NotificationType = NotificationType.INFO,
    now: Optional[str] = None,
) -> Tuple[str, Dict[str, Any]]:
    notification_id = new_id("notif")
    return notification_id, {
        "id": notification_id,
        "userId": user_id,
        "userRole": UserRole(user_role).value,
        "title": title,
        "message": message,
        "type": NotificationType(notification_type).value,
        "read": False,
        "createdAt": now or utcnow_iso(),
    }


def format_amount(amount: Any) -> str:
    return f"${float(to_number(amount)):.2f}"
