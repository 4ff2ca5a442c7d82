"""Student schemas."""

from typing import Any, Dict, List

from pydantic import Field

from app.core.enums import GradeCategory, StudentType
from app.core.schemas import ApiModel


class StudentCreate(ApiModel):
    name: str = Field(..., min_length=1)
    surname: str = Field(..., min_length=1)
    student_number: str = Field(..., min_length=1)
    student_type: StudentType
    grade_category: GradeCategory
    grade: str = Field(..., min_length=1)
    guardian_phone_number: str = Field(..., min_length=1)
    admin_id: str = Field(..., min_length=1)


class StudentCreateResponse(ApiModel):
    success: bool = True
    student_id: str
    student_number: str
    total_balance: float


class StudentUpdate(ApiModel):
    """Profile fields only; the ledger is not rebilled."""

    name: str = Field(..., min_length=1)
    surname: str = Field(..., min_length=1)
    guardian_phone_number: str = Field(..., min_length=1)
    grade: str = Field(..., min_length=1)
    student_type: StudentType
    admin_id: str = Field(..., min_length=1)


class StudentDelete(ApiModel):
    admin_id: str = Field(..., min_length=1)


class StudentDeleteResponse(ApiModel):
    success: bool = True
    message: str
    transactions_removed: int = 0
    notifications_removed: int = 0


class StudentResponse(ApiModel):
    success: bool = True
    student: Dict[str, Any]


class StudentListResponse(ApiModel):
    success: bool = True
    students: List[Dict[str, Any]]
