"""
Billing: resolve a student's per-term fee from the fee schedule and bill terms.

Schedule shape (config/fees):
    {"dayScholar": {"zjc", "oLevel", "aLevelSciences", "aLevelCommercials", "aLevelArts"},
     "boarder":    {... same keys ...}}
"""

import copy
from decimal import Decimal
from typing import Any, Dict, Iterable, Mapping, Optional

from app.core.enums import GradeCategory, StudentType

from .ledger import get_terms, to_decimal, to_number

SCHEDULE_TABLES = ("dayScholar", "boarder")
SCHEDULE_RATES = ("zjc", "oLevel", "aLevelSciences", "aLevelCommercials", "aLevelArts")

# First substring match wins; no match falls back to Sciences.
A_LEVEL_TRACKS = (
    ("Sciences", "aLevelSciences"),
    ("Commercials", "aLevelCommercials"),
    ("Arts", "aLevelArts"),
)
A_LEVEL_DEFAULT_RATE = "aLevelSciences"


def _value(val: Any) -> str:
    return val.value if hasattr(val, "value") else str(val or "")


def fee_for(
    student_type: Any,
    grade_category: Any,
    grade: Optional[str],
    schedule: Optional[Mapping[str, Any]],
) -> Decimal:
    """Per-term fee for a student profile. Unknown categories bill 0."""
    schedule = schedule or {}
    table_key = "boarder" if _value(student_type) == StudentType.BOARDER.value else "dayScholar"
    table = schedule.get(table_key) or {}

    category = _value(grade_category)
    if category == GradeCategory.ZJC.value:
        rate = "zjc"
    elif category == GradeCategory.O_LEVEL.value:
        rate = "oLevel"
    elif category == GradeCategory.A_LEVEL.value:
        rate = A_LEVEL_DEFAULT_RATE
        label = grade or ""
        for track, track_rate in A_LEVEL_TRACKS:
            if track in label:
                rate = track_rate
                break
    else:
        return Decimal("0")
    return to_decimal(table.get(rate))


def student_fee(student: Mapping[str, Any], schedule: Optional[Mapping[str, Any]]) -> Decimal:
    return fee_for(
        student.get("studentType"),
        student.get("gradeCategory"),
        student.get("grade"),
        schedule,
    )


def bill_student_for_terms(
    student: Mapping[str, Any],
    term_keys: Iterable[str],
    schedule: Optional[Mapping[str, Any]],
) -> Dict[str, Any]:
    """Return the student's terms with a {fee, paid: 0} entry for every missing key.

    Existing entries are never re-billed.
    """
    terms = get_terms(student)
    fee = to_number(student_fee(student, schedule))
    for term_key in term_keys:
        if term_key not in terms:
            terms[term_key] = {"fee": fee, "paid": 0}
    return terms


def rebill_fee_schedule(
    students: Mapping[str, Mapping[str, Any]],
    schedule: Optional[Mapping[str, Any]],
) -> Dict[str, Dict[str, Any]]:
    """New terms per student id: every existing term's fee recomputed, paid untouched."""
    rebilled: Dict[str, Dict[str, Any]] = {}
    for student_id, student in students.items():
        if not isinstance(student, Mapping):
            continue
        fee = to_number(student_fee(student, schedule))
        terms = get_terms(student)
        for term_key, term in terms.items():
            term = copy.deepcopy(term) if isinstance(term, Mapping) else {}
            term["fee"] = fee
            term.setdefault("paid", 0)
            terms[term_key] = term
        rebilled[student_id] = terms
    return rebilled
