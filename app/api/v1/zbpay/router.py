"""ZbPay router: payment initiation, client status poll, gateway webhook."""

from fastapi import APIRouter, Depends, HTTPException, Query

from app.core.exceptions import ServiceError
from app.db.store import DocumentStore, get_store
from app.payments.zbpay import ZbPayClient, get_gateway

from .schemas import (
    PaymentInitiate,
    PaymentInitiateResponse,
    PaymentStatusResponse,
    WebhookPayload,
    WebhookResponse,
)
from . import service

router = APIRouter(prefix="/api/v1/zbpay", tags=["zbpay"])


@router.post("/initiate", response_model=PaymentInitiateResponse)
async def initiate_payment(
    payload: PaymentInitiate,
    store: DocumentStore = Depends(get_store),
    gateway: ZbPayClient = Depends(get_gateway),
) -> PaymentInitiateResponse:
    try:
        return await service.initiate_payment(store, gateway, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/status", response_model=PaymentStatusResponse)
async def check_payment_status(
    order_ref: str = Query(..., alias="orderRef", min_length=1),
    tx_id: str = Query(..., alias="txId", min_length=1),
    store: DocumentStore = Depends(get_store),
    gateway: ZbPayClient = Depends(get_gateway),
) -> PaymentStatusResponse:
    try:
        return await service.check_payment_status(store, gateway, order_ref, tx_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/webhook", response_model=WebhookResponse)
async def zbpay_webhook(
    payload: WebhookPayload,
    store: DocumentStore = Depends(get_store),
    gateway: ZbPayClient = Depends(get_gateway),
) -> WebhookResponse:
    try:
        return await service.handle_webhook(store, gateway, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
