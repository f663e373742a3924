from datetime import date
from typing import Any, List
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from app.core.enums import AttendanceStatus


class AttendanceRecordIn(BaseModel):
    """One mark: student, session date, status. class_id must repeat the target class."""

    student_id: UUID
    session_date: date
    status: str = Field(..., description="present, absent or late")
    class_id: UUID

    @field_validator("status")
    @classmethod
    def status_not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("must not be blank")
        return v.strip().lower()


ATTENDANCE_STATUSES = tuple(s.value for s in AttendanceStatus)


class SaveAttendanceRequest(BaseModel):
    """Records are validated one by one in the service so errors can name the index."""

    class_id: UUID
    records: List[Any] = Field(default_factory=list)


class SaveAttendanceResponse(BaseModel):
    ok: bool = True
    saved: int
