"""Read-side views assembled from enrollments, profiles and attendance."""

from datetime import date
from typing import Dict, List
from uuid import UUID

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.models import AdminUser, StudentUser, TeacherUser
from app.auth.rbac import ensure_class_access
from app.auth.schemas import CurrentUser
from app.core.config import settings
from app.core.enums import AttendanceStatus, EnrollmentStatus, RecordStatus
from app.core.exceptions import NotFoundError
from app.core.models import AttendanceRecord, ClassEnrollment, SchoolClass

from app.api.v1.classes import service as class_service

from .schemas import (
    ClassRosterResponse,
    DashboardResponse,
    DashboardStats,
    MyClassResponse,
    RosterStudent,
    RosterTeacher,
    SessionDetailResponse,
    SessionListResponse,
    SessionStudent,
    SessionSummary,
    TeacherClassesResponse,
    WaitingPoolGroup,
)

ACTIVE = EnrollmentStatus.ACTIVE.value


async def _load_accessible_class(db: AsyncSession, current_user: CurrentUser, class_id: UUID) -> SchoolClass:
    school_class = await class_service.get_class_by_id(db, class_id)
    if not school_class:
        raise NotFoundError("Class not found")
    ensure_class_access(current_user, school_class.teacher_id)
    return school_class


def _status_count(status: AttendanceStatus):
    return func.sum(case((AttendanceRecord.status == status.value, 1), else_=0))


async def list_sessions(db: AsyncSession, current_user: CurrentUser, class_id: UUID) -> SessionListResponse:
    """Per-date present/absent/late counts, most recent first."""
    await _load_accessible_class(db, current_user, class_id)
    result = await db.execute(
        select(
            AttendanceRecord.session_date,
            _status_count(AttendanceStatus.PRESENT),
            _status_count(AttendanceStatus.ABSENT),
            _status_count(AttendanceStatus.LATE),
        )
        .where(AttendanceRecord.class_id == class_id)
        .group_by(AttendanceRecord.session_date)
        .order_by(AttendanceRecord.session_date.desc())
    )
    return SessionListResponse(
        sessions=[
            SessionSummary(date=d, present=present or 0, absent=absent or 0, late=late or 0)
            for d, present, absent, late in result.all()
        ]
    )


async def get_session_detail(
    db: AsyncSession,
    current_user: CurrentUser,
    class_id: UUID,
    session_date: date,
) -> SessionDetailResponse:
    await _load_accessible_class(db, current_user, class_id)
    result = await db.execute(
        select(
            AttendanceRecord.student_id,
            AttendanceRecord.status,
            StudentUser.full_name,
            StudentUser.email,
        )
        .outerjoin(StudentUser, StudentUser.user_id == AttendanceRecord.student_id)
        .where(
            AttendanceRecord.class_id == class_id,
            AttendanceRecord.session_date == session_date,
        )
    )
    students = [
        SessionStudent(id=student_id, name=full_name or "Unknown", email=email, status=status)
        for student_id, status, full_name, email in result.all()
    ]
    students.sort(key=lambda s: s.name.lower())
    return SessionDetailResponse(class_id=class_id, session_date=session_date, students=students)


async def get_class_roster(db: AsyncSession, current_user: CurrentUser, class_id: UUID) -> ClassRosterResponse:
    """Active members sorted by name, plus the assigned teacher (or null)."""
    school_class = await _load_accessible_class(db, current_user, class_id)

    result = await db.execute(
        select(StudentUser, ClassEnrollment.created_at)
        .join(ClassEnrollment, ClassEnrollment.student_id == StudentUser.user_id)
        .where(
            ClassEnrollment.class_id == class_id,
            ClassEnrollment.status == ACTIVE,
        )
        .order_by(StudentUser.full_name)
    )
    students = [
        RosterStudent(
            id=s.user_id,
            name=s.full_name,
            email=s.email,
            language=s.language,
            level=s.level,
            enrolled_at=enrolled_at,
        )
        for s, enrolled_at in result.all()
    ]

    teacher = None
    if school_class.teacher_id is not None:
        t = await db.get(TeacherUser, school_class.teacher_id)
        if t is not None:
            teacher = RosterTeacher(
                id=t.user_id,
                name=t.full_name,
                email=t.email,
                languages_taught=t.languages_taught or [],
            )

    return ClassRosterResponse(
        class_=class_service.class_to_response(school_class, teacher.name if teacher else None),
        students=students,
        teacher=teacher,
    )


async def list_teacher_classes(db: AsyncSession, current_user: CurrentUser) -> TeacherClassesResponse:
    result = await db.execute(
        select(SchoolClass)
        .where(SchoolClass.teacher_id == current_user.id)
        .order_by(SchoolClass.name)
    )
    return TeacherClassesResponse(
        classes=[class_service.class_to_response(c, current_user.full_name) for c in result.scalars().all()]
    )


async def get_my_class(db: AsyncSession, current_user: CurrentUser) -> MyClassResponse:
    result = await db.execute(
        select(SchoolClass, TeacherUser.full_name)
        .join(ClassEnrollment, ClassEnrollment.class_id == SchoolClass.id)
        .outerjoin(TeacherUser, TeacherUser.user_id == SchoolClass.teacher_id)
        .where(
            ClassEnrollment.student_id == current_user.id,
            ClassEnrollment.status == ACTIVE,
        )
        .order_by(ClassEnrollment.updated_at.desc())
        .limit(1)
    )
    row = result.first()
    if row is None:
        return MyClassResponse()
    school_class, teacher_name = row
    return MyClassResponse(
        class_=class_service.class_to_response(school_class, teacher_name),
        teacher_name=teacher_name,
    )


async def get_dashboard(db: AsyncSession, current_user: CurrentUser) -> DashboardResponse:
    """Totals and the waiting pool: active students with no active enrollment, grouped by language and level."""
    total_students = (await db.execute(select(func.count()).select_from(StudentUser))).scalar() or 0

    has_active_enrollment = (
        select(ClassEnrollment.student_id)
        .where(
            ClassEnrollment.student_id == StudentUser.user_id,
            ClassEnrollment.status == ACTIVE,
        )
        .exists()
    )
    waiting_rows = await db.execute(
        select(StudentUser.language, StudentUser.level, func.count())
        .where(StudentUser.status == RecordStatus.ACTIVE.value, ~has_active_enrollment)
        .group_by(StudentUser.language, StudentUser.level)
    )
    groups: Dict[str, int] = {}
    for language, level, count in waiting_rows.all():
        name = f"{language or 'Unknown'} {level or ''}".strip()
        groups[name] = groups.get(name, 0) + count
    waiting_pool: List[WaitingPoolGroup] = [
        WaitingPoolGroup(name=name, count=count, max=settings.default_max_students)
        for name, count in sorted(groups.items())
    ]

    active_classes = (
        await db.execute(
            select(func.count()).select_from(SchoolClass).where(SchoolClass.status == RecordStatus.ACTIVE.value)
        )
    ).scalar() or 0
    teachers = (
        await db.execute(
            select(func.count()).select_from(TeacherUser).where(TeacherUser.status == RecordStatus.ACTIVE.value)
        )
    ).scalar() or 0

    admin = await db.get(AdminUser, current_user.id)
    return DashboardResponse(
        admin={
            "full_name": admin.full_name if admin else current_user.full_name,
            "role": admin.role if admin else None,
        },
        stats=DashboardStats(
            total_students=total_students,
            waiting=sum(groups.values()),
            active_classes=active_classes,
            teachers=teachers,
        ),
        waiting_pool=waiting_pool,
    )
