import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.models import AuthIdentity, TeacherUser
from app.auth.services import create_account_with_profile, revoke_identity
from app.core.enums import RecordStatus
from app.core.models import AttendanceRecord, SchoolClass

from .schemas import TeacherCreate, TeacherResponse, TeacherUpdate

logger = logging.getLogger(__name__)


def _to_response(t: TeacherUser) -> TeacherResponse:
    return TeacherResponse(
        user_id=t.user_id,
        full_name=t.full_name,
        email=t.email,
        languages_taught=t.languages_taught or [],
        qualifications=t.qualifications,
        hourly_rate=float(t.hourly_rate) if t.hourly_rate is not None else None,
        is_verified=bool(t.is_verified),
        status=t.status,
        created_at=t.created_at,
        updated_at=t.updated_at,
    )


async def create_teacher(db: AsyncSession, payload: TeacherCreate) -> TeacherResponse:
    """Identity, then teacher profile. A failed profile insert removes the identity again."""

    async def insert_profile(identity: AuthIdentity) -> TeacherUser:
        teacher = TeacherUser(
            user_id=identity.id,
            full_name=payload.full_name.strip(),
            email=identity.email,
            languages_taught=payload.languages or None,
            qualifications=payload.qualifications or None,
            hourly_rate=payload.hourly_rate,
            is_verified=True,
            status=RecordStatus.ACTIVE.value,
        )
        db.add(teacher)
        await db.commit()
        await db.refresh(teacher)
        return teacher

    teacher = await create_account_with_profile(db, payload.email, payload.password, insert_profile)
    logger.info("Created teacher %s", teacher.user_id)
    return _to_response(teacher)


async def list_teachers(db: AsyncSession) -> List[TeacherResponse]:
    result = await db.execute(select(TeacherUser).order_by(TeacherUser.full_name))
    return [_to_response(t) for t in result.scalars().all()]


async def get_teacher(db: AsyncSession, teacher_id: UUID) -> Optional[TeacherResponse]:
    teacher = await db.get(TeacherUser, teacher_id)
    return _to_response(teacher) if teacher else None


async def update_teacher(
    db: AsyncSession,
    teacher_id: UUID,
    payload: TeacherUpdate,
) -> Optional[TeacherResponse]:
    teacher = await db.get(TeacherUser, teacher_id)
    if not teacher:
        return None
    data = payload.model_dump(exclude_unset=True)
    if data.get("full_name") is not None:
        teacher.full_name = data["full_name"].strip()
    if "languages" in data:
        teacher.languages_taught = data["languages"] or None
    if "qualifications" in data:
        teacher.qualifications = data["qualifications"] or None
    if "hourly_rate" in data:
        teacher.hourly_rate = data["hourly_rate"]
    if data.get("is_verified") is not None:
        teacher.is_verified = data["is_verified"]
    if data.get("status") is not None:
        teacher.status = data["status"].value
    await db.commit()
    await db.refresh(teacher)
    return _to_response(teacher)


async def delete_teacher(db: AsyncSession, teacher_id: UUID) -> bool:
    """Unassign the teacher from their classes, then remove profile and identity together."""
    teacher = await db.get(TeacherUser, teacher_id)
    if not teacher:
        return False
    await db.execute(
        update(SchoolClass)
        .where(SchoolClass.teacher_id == teacher_id)
        .values(teacher_id=None)
        .execution_options(synchronize_session=False)
    )
    await db.execute(
        update(AttendanceRecord)
        .where(AttendanceRecord.marked_by == teacher_id)
        .values(marked_by=None)
        .execution_options(synchronize_session=False)
    )
    await db.delete(teacher)
    await revoke_identity(db, teacher_id)
    logger.info("Deleted teacher %s", teacher_id)
    return True
