"""Payment schemas: cash payments, fee adjustments, transaction listing."""

from decimal import Decimal
from typing import Any, Dict, List

from pydantic import Field

from app.core.enums import AdjustmentType
from app.core.schemas import ApiModel


class CashPaymentCreate(ApiModel):
    student_id: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0)
    term_key: str = Field(..., min_length=1)
    bursar_id: str = Field(..., min_length=1)
    bursar_username: str = Field(..., min_length=1)


class CashPaymentResponse(ApiModel):
    success: bool = True
    receipt_number: str
    new_balance: float
    transaction_id: str


class FeeAdjustmentCreate(ApiModel):
    student_id: str = Field(..., min_length=1)
    adjustment_amount: Decimal = Field(..., gt=0)
    term_key: str = Field(..., min_length=1)
    reason: str = Field(..., min_length=1)
    adjustment_type: AdjustmentType
    bursar_id: str = Field(..., min_length=1)
    bursar_username: str = Field(..., min_length=1)


class FeeAdjustmentResponse(ApiModel):
    success: bool = True
    new_balance: float
    transaction_id: str


class TransactionListResponse(ApiModel):
    success: bool = True
    transactions: List[Dict[str, Any]]
