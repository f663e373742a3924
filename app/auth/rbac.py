from fastapi import Depends, HTTPException, status

from app.auth.dependencies import get_current_user
from app.auth.schemas import CurrentUser
from app.core.enums import UserRole
from app.core.exceptions import ForbiddenError


def require_role(*roles: UserRole):
    """
    Dependency factory to enforce that the caller holds one of `roles`.

    Example:
        Depends(require_role(UserRole.ADMIN))
    """
    allowed = {r.value for r in roles}

    async def _checker(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if current_user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return current_user

    return _checker


require_admin = require_role(UserRole.ADMIN)
require_teacher = require_role(UserRole.TEACHER)
require_student = require_role(UserRole.STUDENT)
require_staff = require_role(UserRole.ADMIN, UserRole.TEACHER)


def ensure_class_access(current_user: CurrentUser, class_teacher_id) -> None:
    """Admin: any class. Teacher: only the class they are assigned to."""
    if current_user.is_admin:
        return
    if current_user.is_teacher and class_teacher_id is not None and class_teacher_id == current_user.id:
        return
    raise ForbiddenError("Access denied - you are not the teacher for this class")
