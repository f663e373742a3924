from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from app.core.enums import RecordStatus


def _required_text(v: str) -> str:
    if v is None or not str(v).strip():
        raise ValueError("must not be blank")
    return str(v).strip()


class ClassCreate(BaseModel):
    name: str = Field(..., max_length=255)
    language: str = Field(..., max_length=100)
    level: str = Field(..., max_length=50)
    schedule: Optional[str] = Field(None, max_length=255)
    # Numeric strings ("12") are coerced; omitted -> DEFAULT_MAX_STUDENTS
    max_students: Optional[int] = Field(None, ge=1)

    @field_validator("name", "language", "level")
    @classmethod
    def required_not_blank(cls, v: str) -> str:
        return _required_text(v)

    @field_validator("max_students", mode="before")
    @classmethod
    def blank_max_students_is_default(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class ClassUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    language: Optional[str] = Field(None, max_length=100)
    level: Optional[str] = Field(None, max_length=50)
    schedule: Optional[str] = Field(None, max_length=255)
    max_students: Optional[int] = Field(None, ge=1)
    status: Optional[RecordStatus] = None

    @field_validator("name", "language", "level")
    @classmethod
    def not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _required_text(v)


class ClassResponse(BaseModel):
    id: UUID
    name: str
    language: str
    level: str
    schedule: Optional[str] = None
    max_students: int
    current_students: int
    status: str
    teacher_id: Optional[UUID] = None
    teacher_name: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
