from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.core.enums import RecordStatus


def _split_languages(v):
    """Accepts a comma-separated string ("English, Spanish") or a list."""
    if v is None:
        return None
    if isinstance(v, str):
        return [s.strip() for s in v.split(",") if s.strip()]
    return [str(s).strip() for s in v if str(s).strip()]


def _blank_rate_is_null(v):
    if isinstance(v, str) and not v.strip():
        return None
    return v


class TeacherCreate(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8)
    languages: Optional[List[str]] = None
    qualifications: Optional[str] = None
    hourly_rate: Optional[float] = Field(None, ge=0)

    @field_validator("languages", mode="before")
    @classmethod
    def split_languages(cls, v):
        return _split_languages(v)

    @field_validator("hourly_rate", mode="before")
    @classmethod
    def blank_rate_is_null(cls, v):
        return _blank_rate_is_null(v)


class TeacherUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=1, max_length=255)
    languages: Optional[List[str]] = None
    qualifications: Optional[str] = None
    hourly_rate: Optional[float] = Field(None, ge=0)
    is_verified: Optional[bool] = None
    status: Optional[RecordStatus] = None

    @field_validator("languages", mode="before")
    @classmethod
    def split_languages(cls, v):
        return _split_languages(v)

    @field_validator("hourly_rate", mode="before")
    @classmethod
    def blank_rate_is_null(cls, v):
        return _blank_rate_is_null(v)


class TeacherResponse(BaseModel):
    user_id: UUID
    full_name: str
    email: str
    languages_taught: List[str] = []
    qualifications: Optional[str] = None
    hourly_rate: Optional[float] = None
    is_verified: bool
    status: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
