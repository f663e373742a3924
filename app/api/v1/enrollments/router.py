from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.rbac import require_admin
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import (
    AssignStudentRequest,
    AssignStudentResponse,
    AssignStudentsRequest,
    AssignStudentsResponse,
    AssignTeacherRequest,
    ClassEnvelope,
    UnassignStudentRequest,
    UnassignStudentResponse,
    UnassignTeacherRequest,
)
from . import service

router = APIRouter(prefix="/api/v1/enrollments", tags=["enrollments"], dependencies=[Depends(require_admin)])


@router.post("/assign-students", response_model=AssignStudentsResponse)
async def assign_students(
    payload: AssignStudentsRequest,
    db: AsyncSession = Depends(get_db),
) -> AssignStudentsResponse:
    try:
        return await service.assign_students(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/assign-student", response_model=AssignStudentResponse)
async def assign_student(
    payload: AssignStudentRequest,
    db: AsyncSession = Depends(get_db),
) -> AssignStudentResponse:
    try:
        return await service.assign_single_student(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/unassign-student", response_model=UnassignStudentResponse)
async def unassign_student(
    payload: UnassignStudentRequest,
    db: AsyncSession = Depends(get_db),
) -> UnassignStudentResponse:
    try:
        return await service.unassign_student(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/assign-teacher", response_model=ClassEnvelope)
async def assign_teacher(
    payload: AssignTeacherRequest,
    db: AsyncSession = Depends(get_db),
) -> ClassEnvelope:
    try:
        return ClassEnvelope(class_=await service.assign_teacher(db, payload))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/unassign-teacher", response_model=ClassEnvelope)
async def unassign_teacher(
    payload: UnassignTeacherRequest,
    db: AsyncSession = Depends(get_db),
) -> ClassEnvelope:
    try:
        return ClassEnvelope(class_=await service.unassign_teacher(db, payload))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
