from fastapi import APIRouter, Depends, HTTPException

from app.core.exceptions import ServiceError
from app.db.store import DocumentStore, get_store

from .schemas import FeeStructureResponse, FeeStructureUpdate, FeeStructureUpdateResponse
from . import service

router = APIRouter(prefix="/api/v1/fee-structure", tags=["fee-structure"])


@router.get("", response_model=FeeStructureResponse)
async def get_fee_structure(
    store: DocumentStore = Depends(get_store),
) -> FeeStructureResponse:
    return await service.get_fee_structure(store)


@router.put("", response_model=FeeStructureUpdateResponse)
async def update_fee_structure(
    payload: FeeStructureUpdate,
    store: DocumentStore = Depends(get_store),
) -> FeeStructureUpdateResponse:
    try:
        return await service.update_fee_structure(store, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
