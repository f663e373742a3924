"""Roster read views. Admin: any class; teacher: own classes; student: own assignment."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.rbac import require_admin, require_staff, require_student, require_teacher
from app.auth.schemas import CurrentUser
from app.core.exceptions import ServiceError
from app.db.session import get_db

from . import service
from .schemas import (
    ClassRosterResponse,
    DashboardResponse,
    MyClassResponse,
    SessionDetailResponse,
    SessionListResponse,
    TeacherClassesResponse,
)

router = APIRouter(prefix="/api/v1/roster", tags=["roster"])


@router.get("/class-roster", response_model=ClassRosterResponse)
async def class_roster(
    class_id: UUID = Query(...),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_staff),
) -> ClassRosterResponse:
    try:
        return await service.get_class_roster(db, current_user, class_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/attendance-sessions", response_model=SessionListResponse)
async def attendance_sessions(
    class_id: UUID = Query(...),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_staff),
) -> SessionListResponse:
    try:
        return await service.list_sessions(db, current_user, class_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/attendance-session-detail", response_model=SessionDetailResponse)
async def attendance_session_detail(
    class_id: UUID = Query(...),
    session_date: date = Query(..., alias="date"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_staff),
) -> SessionDetailResponse:
    try:
        return await service.get_session_detail(db, current_user, class_id, session_date)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/my-classes", response_model=TeacherClassesResponse)
async def my_classes(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_teacher),
) -> TeacherClassesResponse:
    return await service.list_teacher_classes(db, current_user)


@router.get("/my-class", response_model=MyClassResponse)
async def my_class(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_student),
) -> MyClassResponse:
    return await service.get_my_class(db, current_user)


@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> DashboardResponse:
    return await service.get_dashboard(db, current_user)
