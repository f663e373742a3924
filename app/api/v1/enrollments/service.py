"""Enrollment ledger: student ↔ class assignment under a capacity limit.

Every mutation runs in one transaction that starts by locking the class rows it touches
(SELECT ... ORDER BY id FOR UPDATE), so the capacity check, the enrollment upsert and the
current_students recount cannot interleave with another assignment to the same class.
current_students is always recomputed from class_enrollments, never adjusted by a delta.

A student holds at most one active enrollment: assigning them to a class flips any
other active enrollment to "transferred" and recounts that class too. student_users.class_id
mirrors the active enrollment and is written in the same transaction.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Dict, List, Sequence, Set, Tuple
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.models import StudentUser, TeacherUser
from app.core.enums import EnrollmentStatus, RecordStatus
from app.core.exceptions import (
    CapacityExceededError,
    NotFoundError,
    ServiceError,
    ValidationError,
)
from app.core.models import ClassEnrollment, SchoolClass
from app.db.upsert import build_upsert

from app.api.v1.classes import service as class_service
from app.api.v1.classes.schemas import ClassResponse

from .schemas import (
    AssignStudentRequest,
    AssignStudentResponse,
    AssignStudentsRequest,
    AssignStudentsResponse,
    AssignTeacherRequest,
    EnrollmentResponse,
    UnassignStudentRequest,
    UnassignStudentResponse,
    UnassignTeacherRequest,
)

logger = logging.getLogger(__name__)

ACTIVE = EnrollmentStatus.ACTIVE.value


@asynccontextmanager
async def _ledger_transaction(db: AsyncSession):
    """Commit on success; roll back (releasing row locks) on any failure."""
    try:
        yield
        await db.commit()
    except ServiceError:
        await db.rollback()
        raise
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("Enrollment transaction failed", exc_info=True)
        raise ServiceError(f"Database error: {e}") from e


def _spots_message(available: int) -> str:
    return f"Class has only {available} available spot{'s' if available != 1 else ''}"


async def _previous_class_ids(db: AsyncSession, student_ids: Sequence[UUID], class_id: UUID) -> Set[UUID]:
    result = await db.execute(
        select(ClassEnrollment.class_id)
        .where(
            ClassEnrollment.student_id.in_(student_ids),
            ClassEnrollment.class_id != class_id,
            ClassEnrollment.status == ACTIVE,
        )
        .distinct()
    )
    return set(result.scalars().all())


async def _lock_for_enrollment(
    db: AsyncSession,
    class_id: UUID,
    student_ids: Sequence[UUID],
) -> Tuple[SchoolClass, List[SchoolClass]]:
    """Lock the target class and every class the students leave, all in ascending id order.

    The set of previous classes is read before locking and re-read afterwards; any class
    that showed up in between is locked in a further pass until the set is stable.
    """
    locked: Dict[UUID, SchoolClass] = {}
    attempted: Set[UUID] = set()
    previous_ids = await _previous_class_ids(db, student_ids, class_id)
    while True:
        pending = ({class_id} | previous_ids) - attempted
        if not pending:
            break
        locked.update(await class_service.lock_classes(db, pending))
        attempted |= pending
        previous_ids = await _previous_class_ids(db, student_ids, class_id)

    school_class = locked.get(class_id)
    if not school_class:
        raise NotFoundError("Class not found")
    if school_class.status != RecordStatus.ACTIVE.value:
        raise ValidationError("Cannot assign students to an inactive class")
    previous = [locked[cid] for cid in sorted(previous_ids, key=str) if cid in locked]
    return school_class, previous


async def _ensure_students_exist(db: AsyncSession, student_ids: Sequence[UUID]) -> None:
    result = await db.execute(select(StudentUser.user_id).where(StudentUser.user_id.in_(student_ids)))
    found = set(result.scalars().all())
    missing = [str(sid) for sid in student_ids if sid not in found]
    if missing:
        raise NotFoundError(f"Student(s) not found: {', '.join(missing)}")


async def active_student_ids(db: AsyncSession, class_id: UUID) -> Set[UUID]:
    result = await db.execute(
        select(ClassEnrollment.student_id).where(
            ClassEnrollment.class_id == class_id,
            ClassEnrollment.status == ACTIVE,
        )
    )
    return set(result.scalars().all())


async def recount_class(db: AsyncSession, school_class: SchoolClass) -> int:
    """Set current_students from a fresh count of active enrollments."""
    school_class.current_students = await class_service.count_active_enrollments(db, school_class.id)
    return school_class.current_students


async def _enroll(
    db: AsyncSession,
    school_class: SchoolClass,
    student_ids: List[UUID],
    previous_classes: List[SchoolClass],
) -> None:
    """Upsert active enrollments, retire the students' other active enrollments, sync pointers and counters.

    All classes involved must already be locked by _lock_for_enrollment.
    """
    now = datetime.utcnow()

    if previous_classes:
        await db.execute(
            update(ClassEnrollment)
            .where(
                ClassEnrollment.student_id.in_(student_ids),
                ClassEnrollment.class_id != school_class.id,
                ClassEnrollment.status == ACTIVE,
            )
            .values(status=EnrollmentStatus.TRANSFERRED.value, updated_at=now)
            .execution_options(synchronize_session=False)
        )

    rows = [
        {
            "class_id": school_class.id,
            "student_id": sid,
            "status": ACTIVE,
            "created_at": now,
            "updated_at": now,
        }
        for sid in student_ids
    ]
    await db.execute(
        build_upsert(
            db,
            ClassEnrollment,
            rows,
            conflict_columns=("class_id", "student_id"),
            update_columns=("status", "updated_at"),
        )
    )

    await db.execute(
        update(StudentUser)
        .where(StudentUser.user_id.in_(student_ids))
        .values(class_id=school_class.id, updated_at=now)
        .execution_options(synchronize_session="fetch")
    )

    for previous in previous_classes:
        await recount_class(db, previous)
        logger.info("Class %s recounted after transfer: %d active", previous.id, previous.current_students)
    await recount_class(db, school_class)


async def assign_students(db: AsyncSession, payload: AssignStudentsRequest) -> AssignStudentsResponse:
    """Assign a batch of students. Rejects the whole batch when it does not fit."""
    student_ids = list(dict.fromkeys(payload.student_ids))
    if not student_ids:
        raise ValidationError("student_ids must contain at least one student")

    async with _ledger_transaction(db):
        school_class, previous_classes = await _lock_for_enrollment(db, payload.class_id, student_ids)
        await _ensure_students_exist(db, student_ids)

        already_active = await active_student_ids(db, school_class.id)
        new_ids = [sid for sid in student_ids if sid not in already_active]
        available = max(school_class.max_students - len(already_active), 0)
        if len(new_ids) > available:
            logger.warning(
                "Capacity exceeded for class %s: %d requested, %d available",
                school_class.id, len(new_ids), available,
            )
            raise CapacityExceededError(_spots_message(available))

        await _enroll(db, school_class, student_ids, previous_classes)

    logger.info(
        "Assigned %d student(s) to class %s; %d/%d active",
        len(student_ids), school_class.id, school_class.current_students, school_class.max_students,
    )
    return AssignStudentsResponse(
        assigned_count=len(student_ids),
        current_students=school_class.current_students,
    )


async def assign_single_student(db: AsyncSession, payload: AssignStudentRequest) -> AssignStudentResponse:
    """Assign or move one student. Re-assigning an active member is a no-op write."""
    async with _ledger_transaction(db):
        school_class, previous_classes = await _lock_for_enrollment(db, payload.class_id, [payload.student_id])
        await _ensure_students_exist(db, [payload.student_id])

        already_active = await active_student_ids(db, school_class.id)
        if payload.student_id not in already_active and len(already_active) >= school_class.max_students:
            logger.warning("Capacity exceeded for class %s: no spot for student %s", school_class.id, payload.student_id)
            raise CapacityExceededError(_spots_message(0))

        await _enroll(db, school_class, [payload.student_id], previous_classes)

    result = await db.execute(
        select(ClassEnrollment)
        .where(
            ClassEnrollment.class_id == payload.class_id,
            ClassEnrollment.student_id == payload.student_id,
        )
        .execution_options(populate_existing=True)
    )
    enrollment = result.scalar_one()
    logger.info("Student %s assigned to class %s", payload.student_id, payload.class_id)
    return AssignStudentResponse(
        enrollment=EnrollmentResponse.model_validate(enrollment),
        current_students=school_class.current_students,
    )


async def unassign_student(db: AsyncSession, payload: UnassignStudentRequest) -> UnassignStudentResponse:
    """Retire the active enrollment (kept as history), clear the pointer, recount."""
    async with _ledger_transaction(db):
        school_class = await class_service.get_class_by_id(db, payload.class_id, for_update=True)
        if not school_class:
            raise NotFoundError("Class not found")

        current = await db.execute(
            select(ClassEnrollment.status).where(
                ClassEnrollment.class_id == payload.class_id,
                ClassEnrollment.student_id == payload.student_id,
            )
        )
        if current.scalar_one_or_none() != ACTIVE:
            raise NotFoundError("Student is not actively enrolled in this class")

        now = datetime.utcnow()
        await db.execute(
            update(ClassEnrollment)
            .where(
                ClassEnrollment.class_id == payload.class_id,
                ClassEnrollment.student_id == payload.student_id,
            )
            .values(status=EnrollmentStatus.INACTIVE.value, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        await db.execute(
            update(StudentUser)
            .where(
                StudentUser.user_id == payload.student_id,
                StudentUser.class_id == payload.class_id,
            )
            .values(class_id=None, updated_at=now)
            .execution_options(synchronize_session="fetch")
        )
        await recount_class(db, school_class)

    logger.info(
        "Student %s unassigned from class %s; %d active",
        payload.student_id, payload.class_id, school_class.current_students,
    )
    return UnassignStudentResponse(current_students=school_class.current_students)


async def assign_teacher(db: AsyncSession, payload: AssignTeacherRequest) -> ClassResponse:
    school_class = await class_service.get_class_by_id(db, payload.class_id)
    if not school_class:
        raise NotFoundError("Class not found")
    teacher = await db.get(TeacherUser, payload.teacher_id)
    if not teacher:
        raise NotFoundError("Teacher not found")
    if teacher.status != RecordStatus.ACTIVE.value:
        raise ValidationError("Cannot assign an inactive teacher")

    school_class.teacher_id = teacher.user_id
    await db.commit()
    await db.refresh(school_class)
    logger.info("Teacher %s assigned to class %s", teacher.user_id, school_class.id)
    return class_service.class_to_response(school_class, teacher.full_name)


async def unassign_teacher(db: AsyncSession, payload: UnassignTeacherRequest) -> ClassResponse:
    school_class = await class_service.get_class_by_id(db, payload.class_id)
    if not school_class:
        raise NotFoundError("Class not found")
    previous = school_class.teacher_id
    school_class.teacher_id = None
    await db.commit()
    await db.refresh(school_class)
    logger.info("Teacher %s unassigned from class %s", previous, school_class.id)
    return class_service.class_to_response(school_class)
