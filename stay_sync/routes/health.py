"""
Liveness and readiness probes.

``/health`` only says the process is up. ``/ready`` also checks the database
and reports how fresh the external calendar snapshot is, without failing on
a stale feed: availability keeps being served from the last good snapshot.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.engine import Engine

from stay_sync.config import CALENDAR_FEED_NAME
from stay_sync.db.readers.calendar import get_sync_state
from stay_sync.dependencies import get_db_engine

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("/health")
def health_check() -> JSONResponse:
    """
    Liveness probe.

    Example:
        >>> GET /health
        {"status": "ok"}
    """
    return JSONResponse(content={"status": "ok"})


@router.get("/ready")
def readiness_check(engine: Engine = Depends(get_db_engine)) -> JSONResponse:
    """
    Readiness probe: 200 when the database answers, 503 otherwise.

    Example:
        >>> GET /ready
        {"status": "ready", "checks": {"database": "ok", "calendar_last_sync": "2024-06-01T10:00:00+00:00"}}
    """
    checks: dict[str, str | None] = {}

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
            state = get_sync_state(conn, CALENDAR_FEED_NAME) or {}
    except Exception as e:
        logger.error("readiness_check_failed", reason="database_not_accessible", error=str(e))
        checks["database"] = "failed"
        return JSONResponse(status_code=503, content={"status": "not ready", "checks": checks})

    checks["database"] = "ok"
    last_sync = state.get("last_sync_at")
    checks["calendar_last_sync"] = last_sync.isoformat() if last_sync else None
    if state.get("last_error"):
        checks["calendar_last_error"] = state["last_error"]

    return JSONResponse(content={"status": "ready", "checks": checks})
