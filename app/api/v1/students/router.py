"""Students router: create (bills active terms), list, read, update, delete."""

from fastapi import APIRouter, Depends, HTTPException

from app.core.exceptions import ServiceError
from app.db.store import DocumentStore, get_store

from .schemas import (
    StudentCreate,
    StudentCreateResponse,
    StudentDelete,
    StudentDeleteResponse,
    StudentListResponse,
    StudentResponse,
    StudentUpdate,
)
from . import service

router = APIRouter(prefix="/api/v1/students", tags=["students"])


@router.post("", response_model=StudentCreateResponse)
async def create_student(
    payload: StudentCreate,
    store: DocumentStore = Depends(get_store),
) -> StudentCreateResponse:
    try:
        return await service.create_student(store, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("", response_model=StudentListResponse)
async def list_students(
    store: DocumentStore = Depends(get_store),
) -> StudentListResponse:
    return await service.list_students(store)


@router.get("/{student_id}", response_model=StudentResponse)
async def get_student(
    student_id: str,
    store: DocumentStore = Depends(get_store),
) -> StudentResponse:
    try:
        return await service.get_student(store, student_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.put("/{student_id}", response_model=StudentResponse)
async def update_student(
    student_id: str,
    payload: StudentUpdate,
    store: DocumentStore = Depends(get_store),
) -> StudentResponse:
    try:
        return await service.update_student(store, student_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{student_id}", response_model=StudentDeleteResponse)
async def delete_student(
    student_id: str,
    payload: StudentDelete,
    store: DocumentStore = Depends(get_store),
) -> StudentDeleteResponse:
    try:
        return await service.delete_student(store, student_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
