"""Payments router: cash payment, fee adjustment, transaction history."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.core.exceptions import ServiceError
from app.db.store import DocumentStore, get_store

from .schemas import (
    CashPaymentCreate,
    CashPaymentResponse,
    FeeAdjustmentCreate,
    FeeAdjustmentResponse,
    TransactionListResponse,
)
from . import service

router = APIRouter(prefix="/api/v1/payments", tags=["payments"])


@router.post("/cash", response_model=CashPaymentResponse)
async def process_cash_payment(
    payload: CashPaymentCreate,
    store: DocumentStore = Depends(get_store),
) -> CashPaymentResponse:
    try:
        return await service.process_cash_payment(store, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/adjustments", response_model=FeeAdjustmentResponse)
async def apply_fee_adjustment(
    payload: FeeAdjustmentCreate,
    store: DocumentStore = Depends(get_store),
) -> FeeAdjustmentResponse:
    try:
        return await service.apply_fee_adjustment(store, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/transactions", response_model=TransactionListResponse)
async def list_transactions(
    student_id: Optional[str] = Query(None, alias="studentId"),
    store: DocumentStore = Depends(get_store),
) -> TransactionListResponse:
    return await service.list_transactions(store, student_id=student_id)
