"""
Create missing tables and report what was created.

Run before the first start (or after adding a model):
  python -m app.db.schema_check
"""
import asyncio
import logging
from typing import List

from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncEngine

import app.core.models  # noqa: F401  registers every table on Base.metadata
from app.core.logging_config import setup_logging
from app.db.session import Base, engine

logger = logging.getLogger(__name__)

REQUIRED_TABLES: List[str] = [
    "auth_identities",
    "admin_users",
    "teacher_users",
    "classes",
    "student_users",
    "class_enrollments",
    "attendance",
]


async def ensure_tables(db_engine: AsyncEngine) -> List[str]:
    """Create any missing table (CREATE TABLE IF NOT EXISTS semantics). Returns the names created."""
    async with db_engine.begin() as conn:
        existing = set(await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names()))
        missing = [t for t in REQUIRED_TABLES if t not in existing]
        await conn.run_sync(Base.metadata.create_all)
    for table in missing:
        logger.info("Created table %s", table)
    return missing


async def main() -> None:
    setup_logging()
    created = await ensure_tables(engine)
    if not created:
        logger.info("All tables present")
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
