"""
Generic upsert helper shared by the writers.

PostgreSQL and SQLite both support ``INSERT ... ON CONFLICT DO UPDATE`` with
the same shape, so the statement is built from whichever dialect the
connection speaks.
"""

from typing import Any

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Connection


def upsert_rows(
    conn: Connection,
    table: type,
    rows: list[dict[str, Any]],
    conflict_columns: list[str],
    update_columns: list[str] | None = None,
) -> None:
    """
    Insert rows, updating the given columns when the key already exists.

    Args:
        conn: Active database connection (within transaction)
        table: SQLAlchemy ORM table class (e.g., CalendarSyncState)
        rows: List of row dicts to upsert
        conflict_columns: Columns of the unique key used for ON CONFLICT
        update_columns: Columns to update on conflict (default: every non-key column in rows[0])

    Example:
        >>> with engine.begin() as conn:
        ...     upsert_rows(
        ...         conn=conn,
        ...         table=CalendarSyncState,
        ...         rows=[{"feed_name": "airbnb", "last_error": "timeout", ...}],
        ...         conflict_columns=["feed_name"],
        ...     )
    """
    if not rows:
        return

    if update_columns is None:
        update_columns = [col for col in rows[0] if col not in conflict_columns]

    insert = postgresql.insert if conn.dialect.name == "postgresql" else sqlite.insert
    stmt = insert(table).values(rows)

    if not update_columns:
        conn.execute(stmt.on_conflict_do_nothing(index_elements=conflict_columns))
        return

    set_dict = {col: getattr(stmt.excluded, col) for col in update_columns}
    stmt = stmt.on_conflict_do_update(index_elements=conflict_columns, set_=set_dict)

    conn.execute(stmt)
