"""Fee structure service: read the schedule, replace it and rebill every student."""

import logging
from typing import Any, Dict

from app.core.enums import NotificationType, UserRole
from app.db.store import DocumentStore
from app.fees.billing import rebill_fee_schedule
from app.fees.ledger import get_terms, to_number
from app.fees.school_config import FEES_PATH, load_currency_code
from app.fees.updates import AtomicUpdate

from .schemas import (
    FeeSchedule,
    FeeStructureResponse,
    FeeStructureUpdate,
    FeeStructureUpdateResponse,
)

logger = logging.getLogger(__name__)


def _schedule_to_tree(schedule: FeeSchedule) -> Dict[str, Any]:
    tree = schedule.model_dump(by_alias=True)
    return {
        table: {rate: to_number(amount) for rate, amount in rates.items()}
        for table, rates in tree.items()
    }


async def get_fee_structure(store: DocumentStore) -> FeeStructureResponse:
    return FeeStructureResponse(
        fees=await store.get(FEES_PATH),
        currency_code=await load_currency_code(store),
    )


async def update_fee_structure(
    store: DocumentStore,
    payload: FeeStructureUpdate,
) -> FeeStructureUpdateResponse:
    schedule = _schedule_to_tree(payload.fees)
    students = await store.get("students") or {}
    rebilled = rebill_fee_schedule(students, schedule)

    builder = AtomicUpdate()
    builder.set(FEES_PATH, schedule)
    updated = 0
    for student_id, terms in rebilled.items():
        student = students[student_id]
        if terms == get_terms(student):
            continue
        builder.set_student_terms(student_id, student, terms)
        updated += 1

    builder.notify(
        payload.admin_id,
        UserRole.ADMIN,
        "Fee Structure Updated",
        "Fee structure has been updated and all student balances have been recalculated.",
        NotificationType.SUCCESS,
    )
    await builder.commit(store)
    logger.info("Fee schedule replaced, %d students rebilled", updated)
    return FeeStructureUpdateResponse(
        message="Fee structure updated and student balances recalculated",
        students_updated=updated,
    )
