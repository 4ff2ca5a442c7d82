"""Term activation schemas."""

from typing import List

from pydantic import Field

from app.core.schemas import ApiModel


class TermChangeRequest(ApiModel):
    term_key: str = Field(..., min_length=1)
    admin_id: str = Field(..., min_length=1)


class ActiveTermsResponse(ApiModel):
    success: bool = True
    active_terms: List[str]


class TermChangeResponse(ApiModel):
    success: bool = True
    message: str
    active_terms: List[str]
    students_billed: int = 0
