"""
SQLAlchemy engine singleton with production-ready connection pooling.

This module creates a single engine instance with connection pooling configured
for PostgreSQL. SQLite URLs (local runs, tests) get a single shared connection
instead, since SQLite has no server-side pool to manage.
"""

from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from stay_sync.config import DATABASE_URL, SCHEMA

if not DATABASE_URL:
    raise RuntimeError("DATABASE_URL is not set.")


def build_engine(url: str, echo: bool = False) -> Engine:
    """
    Create an engine for the given URL.

    SQLite has no schemas, so the configured schema is translated away and all
    tables live in the default namespace.

    Args:
        url: SQLAlchemy database URL
        echo: Log emitted SQL

    Returns:
        Engine: configured engine
    """
    if url.startswith("sqlite"):
        sqlite_engine = create_engine(
            url,
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=echo,
        )
        return sqlite_engine.execution_options(schema_translate_map={SCHEMA: None})

    pool_options: dict[str, Any] = {
        "pool_size": 10,  # Number of connections to maintain in the pool
        "max_overflow": 20,  # Additional connections when pool is exhausted
        "pool_pre_ping": True,  # Verify connections before using
        "pool_recycle": 3600,  # Recycle connections after 1 hour
    }
    return create_engine(url, future=True, echo=echo, **pool_options)


engine: Engine = build_engine(DATABASE_URL)

