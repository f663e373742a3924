import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.models import AuthIdentity, StudentUser
from app.auth.services import create_account_with_profile, revoke_identity
from app.core.enums import EnrollmentStatus, RecordStatus
from app.core.exceptions import NotFoundError, ValidationError
from app.core.models import ClassEnrollment

from .schemas import StudentCreate, StudentResponse, StudentUpdate

logger = logging.getLogger(__name__)


def _has_active_enrollment():
    return (
        select(ClassEnrollment.student_id)
        .where(
            ClassEnrollment.student_id == StudentUser.user_id,
            ClassEnrollment.status == EnrollmentStatus.ACTIVE.value,
        )
        .exists()
    )


async def create_student(db: AsyncSession, payload: StudentCreate) -> StudentResponse:
    """Identity, then student profile. A failed profile insert removes the identity again."""

    async def insert_profile(identity: AuthIdentity) -> StudentUser:
        student = StudentUser(
            user_id=identity.id,
            full_name=payload.full_name.strip(),
            email=identity.email,
            language=payload.language or None,
            level=payload.level or None,
            status=RecordStatus.ACTIVE.value,
        )
        db.add(student)
        await db.commit()
        await db.refresh(student)
        return student

    student = await create_account_with_profile(db, payload.email, payload.password, insert_profile)
    logger.info("Created student %s", student.user_id)
    return StudentResponse.model_validate(student)


async def list_students(
    db: AsyncSession,
    unassigned: bool = False,
    status_filter: Optional[RecordStatus] = None,
) -> List[StudentResponse]:
    """unassigned=True keeps only students without an active enrollment (the waiting pool)."""
    stmt = select(StudentUser).order_by(StudentUser.full_name)
    if unassigned:
        stmt = stmt.where(~_has_active_enrollment())
    if status_filter is not None:
        stmt = stmt.where(StudentUser.status == status_filter.value)
    result = await db.execute(stmt)
    return [StudentResponse.model_validate(s) for s in result.scalars().all()]


async def get_student(db: AsyncSession, student_id: UUID) -> Optional[StudentResponse]:
    student = await db.get(StudentUser, student_id)
    return StudentResponse.model_validate(student) if student else None


async def update_student(
    db: AsyncSession,
    student_id: UUID,
    payload: StudentUpdate,
) -> Optional[StudentResponse]:
    student = await db.get(StudentUser, student_id)
    if not student:
        return None
    data = payload.model_dump(exclude_unset=True)
    if data.get("full_name") is not None:
        student.full_name = data["full_name"].strip()
    if "language" in data:
        student.language = data["language"] or None
    if "level" in data:
        student.level = data["level"] or None
    if data.get("status") is not None:
        student.status = data["status"].value
    await db.commit()
    await db.refresh(student)
    return StudentResponse.model_validate(student)


async def mark_student_inactive(db: AsyncSession, student_id: UUID) -> StudentResponse:
    student = await db.get(StudentUser, student_id)
    if not student:
        raise NotFoundError("Student not found")
    student.status = RecordStatus.INACTIVE.value
    await db.commit()
    await db.refresh(student)
    logger.info("Marked student %s inactive", student_id)
    return StudentResponse.model_validate(student)


async def delete_student(db: AsyncSession, student_id: UUID) -> bool:
    """Blocked while the student is actively enrolled; unassign first."""
    student = await db.get(StudentUser, student_id)
    if not student:
        return False
    active = await db.execute(
        select(ClassEnrollment.class_id).where(
            ClassEnrollment.student_id == student_id,
            ClassEnrollment.status == EnrollmentStatus.ACTIVE.value,
        )
    )
    if active.first() is not None:
        raise ValidationError("Cannot delete student: they have an active enrollment")
    await db.delete(student)
    await revoke_identity(db, student_id)
    logger.info("Deleted student %s", student_id)
    return True
