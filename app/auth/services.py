"""Identity provisioning for directory accounts.

Identity and profile live in separate commits (the identity belongs to the auth provider),
so callers pair provision_identity with revoke_identity as a compensating step when the
profile insert fails. See create_account_with_profile.
"""

import logging
from typing import Awaitable, Callable, TypeVar
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.models import AuthIdentity
from app.auth.security import hash_password
from app.core.exceptions import ConflictError, ServiceError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def provision_identity(db: AsyncSession, email: str, password: str) -> AuthIdentity:
    """Create and commit a login identity. Email must be unused."""
    email = email.strip().lower()
    existing = await db.execute(select(AuthIdentity.id).where(AuthIdentity.email == email))
    if existing.scalar_one_or_none() is not None:
        raise ConflictError("Email is already in use")

    identity = AuthIdentity(email=email, password_hash=hash_password(password))
    db.add(identity)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError("Email is already in use") from e
    await db.refresh(identity)
    logger.info("Provisioned identity %s", identity.id)
    return identity


async def revoke_identity(db: AsyncSession, identity_id: UUID) -> None:
    """Delete an identity (compensation for a failed profile insert, or account removal)."""
    await db.execute(
        delete(AuthIdentity)
        .where(AuthIdentity.id == identity_id)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    logger.info("Revoked identity %s", identity_id)


async def create_account_with_profile(
    db: AsyncSession,
    email: str,
    password: str,
    insert_profile: Callable[[AuthIdentity], Awaitable[T]],
) -> T:
    """
    Two-step account creation: identity first, then the role profile via `insert_profile`.
    If the profile step fails the identity is deleted so no orphaned login remains.
    """
    identity = await provision_identity(db, email, password)
    # rollback expires the instance; the id must be read before it
    identity_id = identity.id
    try:
        return await insert_profile(identity)
    except (SQLAlchemyError, ServiceError) as e:
        await db.rollback()
        try:
            await revoke_identity(db, identity_id)
        except SQLAlchemyError:
            logger.error("Could not revoke orphaned identity %s", identity_id, exc_info=True)
            raise
        logger.warning("Profile insert failed; identity %s rolled back", identity_id)
        if isinstance(e, ServiceError):
            raise
        if isinstance(e, IntegrityError):
            raise ConflictError("Profile conflicts with an existing record") from e
        raise ServiceError(f"Database error: {e}") from e
