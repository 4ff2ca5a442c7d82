"""Terms service: activate a term and bill every student for it, remove a term."""

import logging

from fastapi import status

from app.core.enums import NotificationType, UserRole
from app.core.exceptions import ServiceError
from app.db.store import DocumentStore
from app.fees.billing import bill_student_for_terms
from app.fees.ledger import get_terms
from app.fees.school_config import ACTIVE_TERMS_PATH, FEES_PATH, load_active_terms, load_fee_schedule
from app.fees.updates import AtomicUpdate

from .schemas import ActiveTermsResponse, TermChangeRequest, TermChangeResponse

logger = logging.getLogger(__name__)


async def list_active_terms(store: DocumentStore) -> ActiveTermsResponse:
    return ActiveTermsResponse(active_terms=await load_active_terms(store) or [])


async def activate_term(store: DocumentStore, payload: TermChangeRequest) -> TermChangeResponse:
    stored_terms = await load_active_terms(store)
    active = list(stored_terms or [])
    if payload.term_key in active:
        raise ServiceError("Term is already active", status.HTTP_400_BAD_REQUEST)
    schedule = await load_fee_schedule(store)
    students = await store.get("students") or {}

    active.append(payload.term_key)
    builder = AtomicUpdate()
    builder.set(ACTIVE_TERMS_PATH, active)
    builder.expect_value(ACTIVE_TERMS_PATH, stored_terms)
    builder.expect_value(FEES_PATH, schedule)

    billed = 0
    for student_id, student in students.items():
        if not isinstance(student, dict):
            continue
        terms = bill_student_for_terms(student, active, schedule)
        if terms != get_terms(student):
            builder.set_student_terms(student_id, student, terms)
            billed += 1

    builder.notify(
        payload.admin_id,
        UserRole.ADMIN,
        "Term Activated",
        f'Term "{payload.term_key}" has been activated and {billed} students have been billed.',
        NotificationType.SUCCESS,
    )
    await builder.commit(store)
    logger.info("Activated term %s, billed %d students", payload.term_key, billed)
    return TermChangeResponse(
        message="Term activated successfully",
        active_terms=active,
        students_billed=billed,
    )


async def remove_term(store: DocumentStore, payload: TermChangeRequest) -> TermChangeResponse:
    """Drop a term from the active list. Billed term entries on students are kept."""
    stored_terms = await load_active_terms(store)
    active = list(stored_terms or [])
    if len(active) <= 1:
        raise ServiceError("Cannot remove the last active term", status.HTTP_400_BAD_REQUEST)
    if payload.term_key not in active:
        raise ServiceError("Term is not active", status.HTTP_400_BAD_REQUEST)

    remaining = [t for t in active if t != payload.term_key]
    builder = AtomicUpdate()
    builder.set(ACTIVE_TERMS_PATH, remaining)
    builder.expect_value(ACTIVE_TERMS_PATH, stored_terms)
    builder.notify(
        payload.admin_id,
        UserRole.ADMIN,
        "Term Removed",
        f'Term "{payload.term_key}" has been removed from active terms.',
        NotificationType.WARNING,
    )
    await builder.commit(store)
    logger.info("Removed term %s", payload.term_key)
    return TermChangeResponse(message="Term removed successfully", active_terms=remaining)
