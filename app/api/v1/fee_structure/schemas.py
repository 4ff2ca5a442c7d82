"""Fee schedule schemas."""

from decimal import Decimal
from typing import Optional

from pydantic import Field

from app.core.schemas import ApiModel


class FeeTable(ApiModel):
    """Per-term fee for each grade category / A-Level track."""

    zjc: Decimal = Field(..., ge=0)
    o_level: Decimal = Field(..., ge=0)
    a_level_sciences: Decimal = Field(..., ge=0)
    a_level_commercials: Decimal = Field(..., ge=0)
    a_level_arts: Decimal = Field(..., ge=0)


class FeeSchedule(ApiModel):
    day_scholar: FeeTable
    boarder: FeeTable


class FeeTableOut(ApiModel):
    zjc: float = 0
    o_level: float = 0
    a_level_sciences: float = 0
    a_level_commercials: float = 0
    a_level_arts: float = 0


class FeeScheduleOut(ApiModel):
    day_scholar: FeeTableOut
    boarder: FeeTableOut


class FeeStructureResponse(ApiModel):
    success: bool = True
    fees: Optional[FeeScheduleOut] = None
    currency_code: int


class FeeStructureUpdate(ApiModel):
    fees: FeeSchedule
    admin_id: str = Field(..., min_length=1)


class FeeStructureUpdateResponse(ApiModel):
    success: bool = True
    message: str
    students_updated: int
