"""
Seed the first school admin.

Run once (after schema_check) with env set:
  SEED_ADMIN_EMAIL=owner@school.example
  SEED_ADMIN_PASSWORD=ChangeMe123
  SEED_ADMIN_FULL_NAME="School Owner"   (optional)

Creates an auth identity and an admin_users row for it; an existing identity with the
same email is promoted (password reset, admin row added if missing). Prints a bearer
token for the admin so the API can be used right away.
"""
import asyncio
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.models import AdminUser, AuthIdentity
from app.auth.security import create_access_token, hash_password
from app.core.config import settings
from app.core.logging_config import setup_logging
from app.db.schema_check import ensure_tables
from app.db.session import AsyncSessionLocal, engine

logger = logging.getLogger(__name__)

ADMIN_ROLE = "owner"


async def seed_admin(db: AsyncSession) -> AdminUser:
    email = (settings.seed_admin_email or "").strip().lower()
    password = settings.seed_admin_password
    if not email or not password:
        raise SystemExit("SEED_ADMIN_EMAIL and SEED_ADMIN_PASSWORD must be set")

    result = await db.execute(select(AuthIdentity).where(AuthIdentity.email == email))
    identity = result.scalar_one_or_none()
    if identity is None:
        identity = AuthIdentity(email=email, password_hash=hash_password(password))
        db.add(identity)
        await db.flush()
        logger.info("Created identity for %s", email)
    else:
        identity.password_hash = hash_password(password)
        logger.info("Identity for %s already exists; password reset", email)

    admin = await db.get(AdminUser, identity.id)
    if admin is None:
        admin = AdminUser(user_id=identity.id, full_name=settings.seed_admin_full_name, role=ADMIN_ROLE)
        db.add(admin)
        logger.info("Created admin row for %s", email)
    else:
        admin.full_name = settings.seed_admin_full_name

    await db.commit()
    return admin


async def main() -> None:
    setup_logging()
    await ensure_tables(engine)
    async with AsyncSessionLocal() as db:
        try:
            admin = await seed_admin(db)
        except Exception:
            await db.rollback()
            logger.error("Admin seed failed", exc_info=True)
            raise
    await engine.dispose()
    print(create_access_token(subject={"sub": str(admin.user_id)}))


if __name__ == "__main__":
    asyncio.run(main())
