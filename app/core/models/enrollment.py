from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Index, String
from sqlalchemy.dialects.postgresql import UUID

from app.db.session import Base


class ClassEnrollment(Base):
    """Student ↔ class membership. One row per (class, student); rows are kept as history."""

    __tablename__ = "class_enrollments"
    __table_args__ = (
        Index("ix_class_enrollments_student_status", "student_id", "status"),
    )

    class_id = Column(UUID(as_uuid=True), ForeignKey("classes.id", ondelete="CASCADE"), primary_key=True)
    student_id = Column(
        UUID(as_uuid=True),
        ForeignKey("student_users.user_id", ondelete="CASCADE"),
        primary_key=True,
    )
    status = Column(String(20), nullable=False, default="active")  # active | inactive | transferred
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
