"""
Serialization of reservation writes for the property.

There is one rentable resource, so every check-then-write sequence (conflict
check followed by insert/update) runs under the same lock, held until the
transaction commits. Within a process a ``threading.Lock`` orders writers; on
PostgreSQL a transaction-scoped advisory lock extends that across processes
and is released automatically on commit or rollback.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator

import structlog
from sqlalchemy import text
from sqlalchemy.engine import Connection, Engine

from stay_sync.config import PROPERTY_LOCK_KEY

logger = structlog.get_logger(__name__)

_write_lock = threading.Lock()


@contextmanager
def property_write_transaction(engine: Engine) -> Iterator[Connection]:
    """
    Open a transaction holding the property write lock.

    Example:
        >>> with property_write_transaction(engine) as conn:
        ...     if find_conflict(conn, start, end) is None:
        ...         insert_reservation(conn, row)
    """
    with _write_lock:
        with engine.begin() as conn:
            if conn.dialect.name == "postgresql":
                conn.execute(
                    text("SELECT pg_advisory_xact_lock(:key)"), {"key": PROPERTY_LOCK_KEY}
                )
            logger.debug("property_write_lock_acquired", dialect=conn.dialect.name)
            yield conn
