"""
FastAPI dependency providers.

Routes receive the database engine through ``Depends(get_db_engine)`` so tests
can point them at an in-memory SQLite engine via ``app.dependency_overrides``.
"""

from __future__ import annotations

from typing import Generator

from sqlalchemy.engine import Engine

from stay_sync.db.engine import engine


def get_db_engine() -> Generator[Engine, None, None]:
    """
    Yield the application engine.

    Example:
        >>> @router.get("/availability")
        >>> def get_availability(engine: Engine = Depends(get_db_engine)):
        ...     with engine.connect() as conn:
        ...         return blocked_dates(conn, start, end)

    Testing Example:
        >>> app.dependency_overrides[get_db_engine] = lambda: sqlite_engine
        >>> TestClient(app).get("/availability?from=2024-06-01&to=2024-06-30")
    """
    yield engine
