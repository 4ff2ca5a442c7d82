"""ZbPay schemas: initiation, status poll and webhook push."""

from decimal import Decimal
from typing import Any, Optional

from pydantic import ConfigDict, Field

from app.core.schemas import ApiModel


class PaymentInitiate(ApiModel):
    student_id: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0)
    term_key: str = Field(..., min_length=1)
    return_url: str = Field(..., min_length=1, pattern=r"^https?://")
    result_url: str = Field(..., min_length=1, pattern=r"^https?://")


class PaymentInitiateResponse(ApiModel):
    success: bool = True
    payment_url: Optional[str] = None
    order_reference: str
    transaction_id: str


class PaymentStatusResponse(ApiModel):
    success: bool = True
    status: str
    order_reference: Optional[str] = None
    transaction_id: str
    amount: Any = None
    zb_pay_status: str = "N/A"


class WebhookPayload(ApiModel):
    """Gateway push body. Unknown fields are kept and stored with the transaction."""

    model_config = ConfigDict(extra="allow")

    order_reference: str = Field(..., min_length=1)
    status: Optional[str] = None
    amount: Optional[Decimal] = None
    transaction_id: Optional[str] = None


class WebhookResponse(ApiModel):
    success: bool = True
    message: str
    transaction_id: str
    status: str
