from app.auth.models import AdminUser, AuthIdentity, StudentUser, TeacherUser
from app.core.models.attendance import AttendanceRecord
from app.core.models.class_model import SchoolClass
from app.core.models.enrollment import ClassEnrollment

__all__ = [
    "AdminUser",
    "AttendanceRecord",
    "AuthIdentity",
    "ClassEnrollment",
    "SchoolClass",
    "StudentUser",
    "TeacherUser",
]
