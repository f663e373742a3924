"""Language classes. Model named SchoolClass to avoid Python 'class' keyword."""
import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.db.session import Base


class SchoolClass(Base):
    """
    A class group (e.g. "Spanish A2 evenings").
    current_students caches the number of active enrollments; it is recomputed from
    class_enrollments after every enrollment change and never adjusted by +1/-1.
    """

    __tablename__ = "classes"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    language = Column(String(100), nullable=False)
    level = Column(String(50), nullable=False)
    schedule = Column(String(255), nullable=True)
    max_students = Column(Integer, nullable=False, default=10)
    current_students = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default="Active")  # Active | Inactive
    teacher_id = Column(
        UUID(as_uuid=True),
        ForeignKey("teacher_users.user_id", ondelete="SET NULL"),
        nullable=True,
    )
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    teacher = relationship("TeacherUser", foreign_keys=[teacher_id])
