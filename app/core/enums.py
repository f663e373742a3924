from enum import Enum


class UserRole(str, Enum):
    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"


class RecordStatus(str, Enum):
    """Lifecycle status of classes, teachers and students."""

    ACTIVE = "Active"
    INACTIVE = "Inactive"


class EnrollmentStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    TRANSFERRED = "transferred"  # superseded by an enrollment in another class


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
