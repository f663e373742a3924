from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from app.core.enums import RecordStatus


class StudentCreate(BaseModel):
    """Students start unassigned; placement goes through /enrollments."""

    full_name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8)
    language: Optional[str] = Field(None, max_length=100)
    level: Optional[str] = Field(None, max_length=50)


class StudentUpdate(BaseModel):
    # class_id is not editable here; it follows the active enrollment
    full_name: Optional[str] = Field(None, min_length=1, max_length=255)
    language: Optional[str] = Field(None, max_length=100)
    level: Optional[str] = Field(None, max_length=50)
    status: Optional[RecordStatus] = None


class MarkStudentInactiveRequest(BaseModel):
    student_id: UUID


class StudentResponse(BaseModel):
    user_id: UUID
    full_name: str
    email: str
    language: Optional[str] = None
    level: Optional[str] = None
    class_id: Optional[UUID] = None
    status: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class MarkStudentInactiveResponse(BaseModel):
    updated: StudentResponse
