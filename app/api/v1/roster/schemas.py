from datetime import date, datetime
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.api.v1.classes.schemas import ClassResponse


class RosterStudent(BaseModel):
    id: UUID
    name: str
    email: Optional[str] = None
    language: Optional[str] = None
    level: Optional[str] = None
    enrolled_at: datetime


class RosterTeacher(BaseModel):
    id: UUID
    name: str
    email: Optional[str] = None
    languages_taught: List[str] = []


class ClassRosterResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    class_: ClassResponse = Field(..., alias="class")
    students: List[RosterStudent]
    teacher: Optional[RosterTeacher] = None


class SessionSummary(BaseModel):
    date: date
    present: int = 0
    absent: int = 0
    late: int = 0


class SessionListResponse(BaseModel):
    sessions: List[SessionSummary]


class SessionStudent(BaseModel):
    id: UUID
    name: str
    email: Optional[str] = None
    status: str


class SessionDetailResponse(BaseModel):
    class_id: UUID
    session_date: date
    students: List[SessionStudent]


class TeacherClassesResponse(BaseModel):
    classes: List[ClassResponse]


class MyClassResponse(BaseModel):
    """Student view; class is null while the student waits for placement."""

    model_config = ConfigDict(populate_by_name=True)

    class_: Optional[ClassResponse] = Field(None, alias="class")
    teacher_name: Optional[str] = None


class DashboardStats(BaseModel):
    total_students: int
    waiting: int
    active_classes: int
    teachers: int


class WaitingPoolGroup(BaseModel):
    name: str  # "<language> <level>"
    count: int
    max: int


class DashboardResponse(BaseModel):
    admin: Dict[str, Optional[str]]
    stats: DashboardStats
    waiting_pool: List[WaitingPoolGroup]
