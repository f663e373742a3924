from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.api.v1.classes.schemas import ClassResponse


class AssignStudentsRequest(BaseModel):
    """Batch assignment; all-or-nothing against the class capacity."""

    class_id: UUID
    student_ids: List[UUID]


class AssignStudentsResponse(BaseModel):
    assigned_count: int
    current_students: int


class AssignStudentRequest(BaseModel):
    """Assign or move a single student."""

    student_id: UUID
    class_id: UUID


class UnassignStudentRequest(BaseModel):
    class_id: UUID
    student_id: UUID


class EnrollmentResponse(BaseModel):
    class_id: UUID
    student_id: UUID
    status: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class AssignStudentResponse(BaseModel):
    enrollment: EnrollmentResponse
    current_students: int


class UnassignStudentResponse(BaseModel):
    ok: bool = True
    current_students: int


class AssignTeacherRequest(BaseModel):
    class_id: UUID
    teacher_id: UUID


class UnassignTeacherRequest(BaseModel):
    class_id: UUID
    teacher_id: Optional[UUID] = None  # accepted for symmetry with assign; ignored


class ClassEnvelope(BaseModel):
    """{"class": {...}}; `class` is a keyword, hence the alias."""

    model_config = ConfigDict(populate_by_name=True)

    class_: ClassResponse = Field(..., alias="class")
