import logging
from typing import Optional, Tuple
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.models import AdminUser, StudentUser, TeacherUser
from app.auth.schemas import CurrentUser
from app.auth.security import decode_access_token
from app.core.enums import UserRole
from app.db.session import get_db

logger = logging.getLogger(__name__)

# auto_error=False: a missing header must yield 401, not FastAPI's default 403
bearer_scheme = HTTPBearer(auto_error=False)

# Lookup order decides the role of a subject present in several role tables
ROLE_TABLES = (
    (UserRole.ADMIN, AdminUser),
    (UserRole.TEACHER, TeacherUser),
    (UserRole.STUDENT, StudentUser),
)


async def resolve_role(db: AsyncSession, user_id: UUID) -> Tuple[Optional[str], Optional[str]]:
    """Return (role, full_name) from the first role table holding user_id, else (None, None)."""
    for role, model in ROLE_TABLES:
        result = await db.execute(select(model.full_name).where(model.user_id == user_id))
        full_name = result.scalar_one_or_none()
        if full_name is not None:
            return role.value, full_name
    return None, None


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> CurrentUser:
    """Resolve the authenticated caller and their role from the bearer token."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None or not credentials.credentials:
        raise credentials_exception

    try:
        payload = decode_access_token(credentials.credentials)
    except JWTError:
        logger.warning("Rejected bearer token: signature, expiry or format check failed")
        raise credentials_exception

    sub = payload.get("sub")
    if not sub:
        raise credentials_exception
    try:
        user_id = UUID(str(sub))
    except ValueError:
        raise credentials_exception

    role, full_name = await resolve_role(db, user_id)
    return CurrentUser(id=user_id, role=role, full_name=full_name)
