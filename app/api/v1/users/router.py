"""Users router: credential changes on login records."""

from fastapi import APIRouter, Depends, HTTPException

from app.core.exceptions import ServiceError
from app.db.store import DocumentStore, get_store

from .schemas import CredentialChangeResponse, PasswordChange, UsernameChange
from . import service

router = APIRouter(prefix="/api/v1/users", tags=["users"])


@router.put("/{user_id}/password", response_model=CredentialChangeResponse)
async def change_password(
    user_id: str,
    payload: PasswordChange,
    store: DocumentStore = Depends(get_store),
) -> CredentialChangeResponse:
    try:
        return await service.change_password(store, user_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.put("/{user_id}/username", response_model=CredentialChangeResponse)
async def change_username(
    user_id: str,
    payload: UsernameChange,
    store: DocumentStore = Depends(get_store),
) -> CredentialChangeResponse:
    try:
        return await service.change_username(store, user_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
