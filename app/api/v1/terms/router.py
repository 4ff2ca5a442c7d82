"""Terms router: list, activate (bills students), remove."""

from fastapi import APIRouter, Depends, HTTPException

from app.core.exceptions import ServiceError
from app.db.store import DocumentStore, get_store

from .schemas import ActiveTermsResponse, TermChangeRequest, TermChangeResponse
from . import service

router = APIRouter(prefix="/api/v1/terms", tags=["terms"])


@router.get("", response_model=ActiveTermsResponse)
async def list_active_terms(
    store: DocumentStore = Depends(get_store),
) -> ActiveTermsResponse:
    return await service.list_active_terms(store)


@router.post("/activate", response_model=TermChangeResponse)
async def activate_term(
    payload: TermChangeRequest,
    store: DocumentStore = Depends(get_store),
) -> TermChangeResponse:
    try:
        return await service.activate_term(store, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/remove", response_model=TermChangeResponse)
async def remove_term(
    payload: TermChangeRequest,
    store: DocumentStore = Depends(get_store),
) -> TermChangeResponse:
    try:
        return await service.remove_term(store, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
