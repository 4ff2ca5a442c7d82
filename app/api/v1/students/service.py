"""Students service: create and bill, read, profile update, cascading delete."""

import logging

from app.auth.security import hash_password
from app.core.config import settings
from app.core.enums import NotificationType, UserRole
from app.core.exceptions import ConflictError, NotFoundError
from app.db.store import DocumentStore
from app.fees.billing import bill_student_for_terms
from app.fees.ledger import to_number
from app.fees.school_config import ACTIVE_TERMS_PATH, FEES_PATH, load_active_terms, load_fee_schedule
from app.fees.transactions import format_amount, generate_student_id, student_display_name
from app.fees.updates import AtomicUpdate

from .schemas import (
    StudentCreate,
    StudentCreateResponse,
    StudentDelete,
    StudentDeleteResponse,
    StudentListResponse,
    StudentResponse,
    StudentUpdate,
)

logger = logging.getLogger(__name__)


async def _get_student_or_404(store: DocumentStore, student_id: str) -> dict:
    student = await store.get(f"students/{student_id}")
    if not isinstance(student, dict):
        raise NotFoundError("Student not found")
    return student


async def create_student(store: DocumentStore, payload: StudentCreate) -> StudentCreateResponse:
    existing = await store.find("students", "studentNumber", payload.student_number)
    if existing:
        raise ConflictError(f"Student number {payload.student_number} already exists")

    stored_terms = await load_active_terms(store)
    schedule = await load_fee_schedule(store)

    student_id = generate_student_id()
    builder = AtomicUpdate()
    record = {
        "id": student_id,
        "name": payload.name,
        "surname": payload.surname,
        "studentNumber": payload.student_number,
        "studentType": payload.student_type.value,
        "gradeCategory": payload.grade_category.value,
        "grade": payload.grade,
        "guardianPhoneNumber": payload.guardian_phone_number,
        "createdAt": builder.now,
    }
    terms = bill_student_for_terms(record, stored_terms or [], schedule)
    balance = builder.create_student(student_id, record, terms)
    # Active terms and fee schedule unchanged since billing
    builder.expect_value(ACTIVE_TERMS_PATH, stored_terms)
    builder.expect_value(FEES_PATH, schedule)
    builder.set(
        f"users/{student_id}",
        {
            "id": student_id,
            "username": payload.student_number,
            "passwordHash": hash_password(settings.default_student_password),
            "role": UserRole.STUDENT.value,
            "createdAt": builder.now,
        },
    )
    builder.notify(
        student_id,
        UserRole.STUDENT,
        "Welcome!",
        f"Your account has been created. Your balance is {format_amount(balance)}.",
        NotificationType.INFO,
    )
    builder.notify(
        payload.admin_id,
        UserRole.ADMIN,
        "New Student Added",
        f"New student {payload.name} {payload.surname} ({payload.student_number}) added to {payload.grade}",
        NotificationType.SUCCESS,
    )
    await builder.commit(store)
    logger.info("Created student %s (%s) billed for %d terms", student_id, payload.student_number, len(terms))
    return StudentCreateResponse(
        student_id=student_id,
        student_number=payload.student_number,
        total_balance=to_number(balance),
    )


async def list_students(store: DocumentStore) -> StudentListResponse:
    students = await store.get("students") or {}
    rows = [s for s in students.values() if isinstance(s, dict)]
    rows.sort(key=lambda s: (s.get("surname") or "", s.get("name") or ""))
    return StudentListResponse(students=rows)


async def get_student(store: DocumentStore, student_id: str) -> StudentResponse:
    return StudentResponse(student=await _get_student_or_404(store, student_id))


async def update_student(
    store: DocumentStore,
    student_id: str,
    payload: StudentUpdate,
) -> StudentResponse:
    student = await _get_student_or_404(store, student_id)
    base = f"students/{student_id}"

    builder = AtomicUpdate()
    builder.set(f"{base}/name", payload.name)
    builder.set(f"{base}/surname", payload.surname)
    builder.set(f"{base}/guardianPhoneNumber", payload.guardian_phone_number)
    builder.set(f"{base}/grade", payload.grade)
    builder.set(f"{base}/studentType", payload.student_type.value)
    builder.set(f"{base}/updatedAt", builder.now)
    builder.expect_value(f"{base}/updatedAt", student.get("updatedAt"))
    builder.notify(
        payload.admin_id,
        UserRole.ADMIN,
        "Student Updated",
        f"Student {payload.name} {payload.surname} information has been updated.",
        NotificationType.INFO,
    )
    await builder.commit(store)
    return StudentResponse(student=await _get_student_or_404(store, student_id))


async def delete_student(
    store: DocumentStore,
    student_id: str,
    payload: StudentDelete,
) -> StudentDeleteResponse:
    """Remove the student, its login, its transactions and its notifications in one write."""
    student = await _get_student_or_404(store, student_id)
    transactions = await store.find("transactions", "studentId", student_id)
    notifications = await store.find("notifications", "userId", student_id)

    builder = AtomicUpdate()
    builder.delete(f"students/{student_id}")
    builder.delete(f"users/{student_id}")
    for tx_id in transactions:
        builder.delete(f"transactions/{tx_id}")
    for notification_id in notifications:
        builder.delete(f"notifications/{notification_id}")
    builder.expect_value(f"students/{student_id}/updatedAt", student.get("updatedAt"))
    builder.notify(
        payload.admin_id,
        UserRole.ADMIN,
        "Student Deleted",
        f"Student {student_display_name(student)} ({student.get('studentNumber')}) has been deleted from the system.",
        NotificationType.WARNING,
    )
    await builder.commit(store)
    logger.info(
        "Deleted student %s with %d transactions and %d notifications",
        student_id, len(transactions), len(notifications),
    )
    return StudentDeleteResponse(
        message="Student deleted successfully",
        transactions_removed=len(transactions),
        notifications_removed=len(notifications),
    )
