import uuid
from datetime import datetime

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Numeric, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.db.session import Base


class AuthIdentity(Base):
    """Login identity held by the auth provider. Role tables reference it by user_id."""

    __tablename__ = "auth_identities"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)


class AdminUser(Base):
    """Presence of a row grants the admin role."""

    __tablename__ = "admin_users"

    user_id = Column(UUID(as_uuid=True), ForeignKey("auth_identities.id", ondelete="CASCADE"), primary_key=True)
    full_name = Column(String(255), nullable=False)
    # Free-form label shown in the admin UI (owner, manager, ...); not used for access checks
    role = Column(String(50), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)


class TeacherUser(Base):
    """Teacher profile; presence of a row grants the teacher role."""

    __tablename__ = "teacher_users"

    user_id = Column(UUID(as_uuid=True), ForeignKey("auth_identities.id", ondelete="CASCADE"), primary_key=True)
    full_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    languages_taught = Column(JSON, nullable=True)  # ["English", "Spanish"]
    qualifications = Column(Text, nullable=True)
    hourly_rate = Column(Numeric(10, 2), nullable=True)
    is_verified = Column(Boolean, nullable=False, default=True)
    status = Column(String(20), nullable=False, default="Active")
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class StudentUser(Base):
    """
    Student profile; presence of a row grants the student role.
    class_id mirrors the student's single active enrollment (class_enrollments is the source of truth)
    and is rewritten in the same transaction as every enrollment change.
    """

    __tablename__ = "student_users"

    user_id = Column(UUID(as_uuid=True), ForeignKey("auth_identities.id", ondelete="CASCADE"), primary_key=True)
    full_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    language = Column(String(100), nullable=True)
    level = Column(String(50), nullable=True)
    class_id = Column(UUID(as_uuid=True), ForeignKey("classes.id", ondelete="SET NULL"), nullable=True)
    status = Column(String(20), nullable=False, default="Active")
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    current_class = relationship("SchoolClass", foreign_keys=[class_id])
