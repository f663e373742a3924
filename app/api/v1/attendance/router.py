"""Attendance API router."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user
from app.auth.schemas import CurrentUser
from app.core.exceptions import ServiceError
from app.db.session import get_db

from . import service
from .schemas import SaveAttendanceRequest, SaveAttendanceResponse

router = APIRouter(prefix="/api/v1/attendance", tags=["attendance"])


@router.post("/save-attendance", response_model=SaveAttendanceResponse)
async def save_attendance(
    payload: SaveAttendanceRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> SaveAttendanceResponse:
    """Teacher of the class only. Resubmitting a session overwrites its marks."""
    try:
        return await service.save_attendance(db, current_user, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
