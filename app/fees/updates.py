"""Atomic update builder: one ledger mutation, its records and notifications, committed in one write."""

import logging
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional

from app.core.enums import NotificationType, UserRole
from app.db.store import DocumentStore

from .ledger import compute_balance, to_number
from .transactions import notification_record, utcnow_iso

logger = logging.getLogger(__name__)


class AtomicUpdate:
    """Accumulates (path -> value) writes plus preconditions for a single store update.

    Balance is only ever written here, recomputed from the terms being written.
    """

    def __init__(self, now: Optional[str] = None) -> None:
        self.now = now or utcnow_iso()
        self.updates: Dict[str, Any] = {}
        self.expect: Dict[str, Any] = {}

    def __len__(self) -> int:
        return len(self.updates)

    def set(self, path: str, value: Any) -> "AtomicUpdate":
        self.updates[path] = value
        return self

    def delete(self, path: str) -> "AtomicUpdate":
        self.updates[path] = None
        return self

    def expect_value(self, path: str, value: Any) -> "AtomicUpdate":
        self.expect[path] = value
        return self

    def create_student(self, student_id: str, record: Mapping[str, Any], terms: Mapping[str, Any]) -> Decimal:
        balance = compute_balance(terms)
        student = dict(record)
        student["financials"] = {"balance": to_number(balance), "terms": dict(terms)}
        student.setdefault("createdAt", self.now)
        student["updatedAt"] = self.now
        self.updates[f"students/{student_id}"] = student
        self.expect[f"students/{student_id}"] = None
        return balance

    def set_student_terms(
        self,
        student_id: str,
        student: Mapping[str, Any],
        terms: Mapping[str, Any],
    ) -> Decimal:
        """Write the student's terms and the balance derived from them.

        Guarded on the student's updatedAt as read, so a concurrent ledger
        mutation of the same student fails instead of being overwritten.
        """
        balance = compute_balance(terms)
        base = f"students/{student_id}"
        self.updates[f"{base}/financials/terms"] = dict(terms)
        self.updates[f"{base}/financials/balance"] = to_number(balance)
        self.updates[f"{base}/updatedAt"] = self.now
        self.expect[f"{base}/updatedAt"] = student.get("updatedAt")
        return balance

    def add_transaction(self, record: Mapping[str, Any]) -> str:
        self.updates[f"transactions/{record['id']}"] = dict(record)
        return record["id"]

    def add_bursar_activity(self, record: Mapping[str, Any]) -> str:
        self.updates[f"bursar_activity/{record['id']}"] = dict(record)
        return record["id"]

    def notify(
        self,
        user_id: str,
        user_role: UserRole,
        title: str,
        message: str,
        notification_type: NotificationType = NotificationType.INFO,
    ) -> str:
        notification_id, record = notification_record(
            user_id, user_role, title, message, notification_type, now=self.now
        )
        self.updates[f"notifications/{notification_id}"] = record
        return notification_id

    async def commit(self, store: DocumentStore) -> None:
        logger.debug("Committing %d paths with %d preconditions", len(self.updates), len(self.expect))
        await store.update(self.updates, expect=self.expect)
