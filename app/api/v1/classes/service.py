import logging
from typing import Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.models import TeacherUser
from app.core.config import settings
from app.core.enums import EnrollmentStatus, RecordStatus
from app.core.exceptions import ValidationError
from app.core.models import ClassEnrollment, SchoolClass

from .schemas import ClassCreate, ClassResponse, ClassUpdate

logger = logging.getLogger(__name__)


def class_to_response(c: SchoolClass, teacher_name: Optional[str] = None) -> ClassResponse:
    return ClassResponse(
        id=c.id,
        name=c.name,
        language=c.language,
        level=c.level,
        schedule=c.schedule,
        max_students=c.max_students,
        current_students=c.current_students or 0,
        status=c.status,
        teacher_id=c.teacher_id,
        teacher_name=teacher_name,
        created_at=c.created_at,
        updated_at=c.updated_at,
    )


async def _teacher_name(db: AsyncSession, teacher_id: Optional[UUID]) -> Optional[str]:
    if teacher_id is None:
        return None
    result = await db.execute(select(TeacherUser.full_name).where(TeacherUser.user_id == teacher_id))
    return result.scalar_one_or_none()


async def to_response_with_teacher(db: AsyncSession, c: SchoolClass) -> ClassResponse:
    return class_to_response(c, await _teacher_name(db, c.teacher_id))


async def count_active_enrollments(db: AsyncSession, class_id: UUID) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(ClassEnrollment)
        .where(
            ClassEnrollment.class_id == class_id,
            ClassEnrollment.status == EnrollmentStatus.ACTIVE.value,
        )
    )
    return result.scalar() or 0


async def get_class_by_id(
    db: AsyncSession,
    class_id: UUID,
    for_update: bool = False,
) -> Optional[SchoolClass]:
    """Load a class with fresh column values; for_update locks the row until commit/rollback."""
    stmt = select(SchoolClass).where(SchoolClass.id == class_id).execution_options(populate_existing=True)
    if for_update:
        stmt = stmt.with_for_update()
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def lock_classes(db: AsyncSession, class_ids: Iterable[UUID]) -> Dict[UUID, SchoolClass]:
    """Lock several class rows in id order, in one statement. Missing ids are simply absent."""
    ids = set(class_ids)
    if not ids:
        return {}
    result = await db.execute(
        select(SchoolClass)
        .where(SchoolClass.id.in_(ids))
        .order_by(SchoolClass.id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return {c.id: c for c in result.scalars().all()}


async def create_class(db: AsyncSession, payload: ClassCreate) -> ClassResponse:
    max_students = payload.max_students if payload.max_students is not None else settings.default_max_students
    obj = SchoolClass(
        name=payload.name,
        language=payload.language,
        level=payload.level,
        schedule=payload.schedule or None,
        max_students=max_students,
        current_students=0,
        status=RecordStatus.ACTIVE.value,
    )
    db.add(obj)
    await db.commit()
    await db.refresh(obj)
    logger.info("Created class %s (%s %s, capacity %d)", obj.id, obj.language, obj.level, obj.max_students)
    return class_to_response(obj)


async def list_classes(
    db: AsyncSession,
    status_filter: Optional[RecordStatus] = None,
) -> List[ClassResponse]:
    stmt = (
        select(SchoolClass, TeacherUser.full_name)
        .outerjoin(TeacherUser, TeacherUser.user_id == SchoolClass.teacher_id)
        .order_by(SchoolClass.name)
    )
    if status_filter is not None:
        stmt = stmt.where(SchoolClass.status == status_filter.value)
    result = await db.execute(stmt)
    return [class_to_response(c, teacher_name) for c, teacher_name in result.all()]


async def get_class(db: AsyncSession, class_id: UUID) -> Optional[ClassResponse]:
    obj = await get_class_by_id(db, class_id)
    return await to_response_with_teacher(db, obj) if obj else None


async def update_class(
    db: AsyncSession,
    class_id: UUID,
    payload: ClassUpdate,
) -> Optional[ClassResponse]:
    obj = await get_class_by_id(db, class_id, for_update=True)
    if not obj:
        return None
    data = payload.model_dump(exclude_unset=True)
    if data.get("max_students") is not None:
        active = await count_active_enrollments(db, class_id)
        if data["max_students"] < active:
            await db.rollback()
            raise ValidationError(
                f"max_students cannot be lower than the {active} students currently enrolled"
            )
    for field in ("name", "language", "level", "schedule", "max_students"):
        if data.get(field) is not None:
            setattr(obj, field, data[field])
    if data.get("status") is not None:
        obj.status = data["status"].value
    await db.commit()
    await db.refresh(obj)
    return await to_response_with_teacher(db, obj)


async def delete_class(db: AsyncSession, class_id: UUID) -> bool:
    obj = await get_class_by_id(db, class_id)
    if not obj:
        return False
    if await count_active_enrollments(db, class_id) > 0:
        raise ValidationError("Cannot delete class: it has actively enrolled students")
    await db.delete(obj)
    await db.commit()
    logger.info("Deleted class %s", class_id)
    return True
