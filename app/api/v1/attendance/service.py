"""Attendance recorder: batch upsert keyed by (class, student, session date)."""

import logging
import uuid
from datetime import date, datetime
from typing import Dict, List, Tuple
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.rbac import ensure_class_access
from app.auth.schemas import CurrentUser
from app.core.enums import EnrollmentStatus
from app.core.exceptions import (
    ForbiddenError,
    NotEnrolledError,
    NotFoundError,
    ServiceError,
    ValidationError,
)
from app.core.models import AttendanceRecord, ClassEnrollment
from app.db.upsert import build_upsert

from app.api.v1.classes import service as class_service

from .schemas import (
    ATTENDANCE_STATUSES,
    AttendanceRecordIn,
    SaveAttendanceRequest,
    SaveAttendanceResponse,
)

logger = logging.getLogger(__name__)


async def _enrolled_student_ids(db: AsyncSession, class_id: UUID) -> set:
    result = await db.execute(
        select(ClassEnrollment.student_id).where(
            ClassEnrollment.class_id == class_id,
            ClassEnrollment.status == EnrollmentStatus.ACTIVE.value,
        )
    )
    return set(result.scalars().all())


def _parse_records(class_id: UUID, raw_records: List) -> List[AttendanceRecordIn]:
    parsed = []
    for i, raw in enumerate(raw_records):
        try:
            record = AttendanceRecordIn.model_validate(raw)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid record payload at index {i}") from e
        if record.class_id != class_id:
            raise ValidationError(f"Record class_id mismatch at index {i}")
        if record.status not in ATTENDANCE_STATUSES:
            raise ValidationError(f"Invalid attendance status at index {i}")
        parsed.append(record)
    return parsed


async def save_attendance(
    db: AsyncSession,
    current_user: CurrentUser,
    payload: SaveAttendanceRequest,
) -> SaveAttendanceResponse:
    """
    Validate the whole batch against the class roster, then write it in one upsert.

    Only the class's assigned teacher may save. Any invalid record rejects the batch.
    Within a batch the last mark for a (student, date) wins.
    """
    school_class = await class_service.get_class_by_id(db, payload.class_id)
    if not school_class:
        raise NotFoundError("Class not found")
    if not current_user.is_teacher:
        raise ForbiddenError("Only the class teacher can record attendance")
    try:
        ensure_class_access(current_user, school_class.teacher_id)
    except ForbiddenError:
        logger.warning("Attendance rejected: user %s is not the teacher of class %s", current_user.id, school_class.id)
        raise

    if not payload.records:
        raise ValidationError("No attendance records provided")

    records = _parse_records(school_class.id, payload.records)
    allowed = await _enrolled_student_ids(db, school_class.id)
    for i, record in enumerate(records):
        if record.student_id not in allowed:
            logger.warning(
                "Attendance rejected: student %s at index %d is not enrolled in class %s",
                record.student_id, i, school_class.id,
            )
            raise NotEnrolledError(f"Student is not enrolled in this class at index {i}")

    latest: Dict[Tuple[UUID, date], AttendanceRecordIn] = {}
    for record in records:
        latest[(record.student_id, record.session_date)] = record

    class_id = school_class.id
    now = datetime.utcnow()
    rows = [
        {
            "id": uuid.uuid4(),
            "class_id": class_id,
            "student_id": record.student_id,
            "session_date": record.session_date,
            "status": record.status,
            "marked_by": current_user.id,
            "created_at": now,
            "updated_at": now,
        }
        for record in latest.values()
    ]
    stmt = build_upsert(
        db,
        AttendanceRecord,
        rows,
        conflict_columns=("class_id", "student_id", "session_date"),
        update_columns=("status", "marked_by", "updated_at"),
    )
    try:
        await db.execute(stmt)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("Attendance upsert failed for class %s", class_id, exc_info=True)
        raise ServiceError(f"Database error: {e}") from e

    logger.info(
        "Saved %d attendance mark(s) for class %s by teacher %s",
        len(rows), class_id, current_user.id,
    )
    return SaveAttendanceResponse(saved=len(rows))
