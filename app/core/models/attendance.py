"""Per-session attendance marks. One row per (class, student, session date); resubmission overwrites."""

import uuid
from datetime import datetime

from sqlalchemy import Column, Date, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID

from app.db.session import Base


class AttendanceRecord(Base):
    __tablename__ = "attendance"
    __table_args__ = (
        UniqueConstraint("class_id", "student_id", "session_date", name="uq_attendance_class_student_date"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    class_id = Column(UUID(as_uuid=True), ForeignKey("classes.id", ondelete="CASCADE"), nullable=False)
    student_id = Column(
        UUID(as_uuid=True),
        ForeignKey("student_users.user_id", ondelete="CASCADE"),
        nullable=False,
    )
    session_date = Column(Date, nullable=False)
    status = Column(String(20), nullable=False)  # present | absent | late
    marked_by = Column(UUID(as_uuid=True), ForeignKey("teacher_users.user_id"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
