"""INSERT ... ON CONFLICT DO UPDATE for the dialects we run on (PostgreSQL, SQLite in tests)."""

from typing import Any, Dict, List, Sequence

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession


def build_upsert(
    db: AsyncSession,
    model,
    rows: List[Dict[str, Any]],
    conflict_columns: Sequence[str],
    update_columns: Sequence[str],
):
    """Return an upsert statement for `rows`; on a `conflict_columns` hit the existing row
    takes the incoming values of `update_columns` (last write wins)."""
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        insert = postgresql.insert
    elif dialect == "sqlite":
        insert = sqlite.insert
    else:
        raise NotImplementedError(f"Upsert is not supported on dialect {dialect!r}")

    stmt = insert(model).values(rows)
    return stmt.on_conflict_do_update(
        index_elements=list(conflict_columns),
        set_={col: stmt.excluded[col] for col in update_columns},
    )
