from typing import Any

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from sqlalchemy.engine import Engine

from stay_sync.config import CALENDAR_FEED_NAME, CALENDAR_FEED_URL
from stay_sync.db.readers.calendar import get_sync_state, list_feed_events
from stay_sync.dependencies import get_db_engine
from stay_sync.network.client import redact_url
from stay_sync.schemas.calendar import CalendarOut
from stay_sync.services.calendar_sync import is_sync_running, run_calendar_sync
from stay_sync.utils.datetime import local_today, utc_now

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.get("/calendar", response_model=CalendarOut)
def get_calendar(engine: Engine = Depends(get_db_engine)) -> Any:
    """
    External calendar snapshot: events ending today or later plus sync status.

    Served from the last successful sync; a failed sync shows up in
    ``lastError`` while ``events`` and ``lastSync`` keep their previous values.

    Returns:
        CalendarOut: Events and sync bookkeeping
    """
    try:
        with engine.connect() as conn:
            events = list_feed_events(
                conn, feed_name=CALENDAR_FEED_NAME, ending_after=local_today(utc_now())
            )
            state = get_sync_state(conn, CALENDAR_FEED_NAME) or {}

        return {
            "events": events,
            "last_sync": state.get("last_sync_at"),
            "last_attempt": state.get("last_attempt_at"),
            "last_error": state.get("last_error"),
            "last_error_at": state.get("last_error_at"),
            "total_events": len(events),
            "calendar_url": redact_url(CALENDAR_FEED_URL) if CALENDAR_FEED_URL else None,
        }
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("calendar_read_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/calendar/sync", status_code=status.HTTP_202_ACCEPTED)
def trigger_calendar_sync(
    background_tasks: BackgroundTasks,
    engine: Engine = Depends(get_db_engine),
) -> dict[str, str]:
    """
    Manually trigger a calendar sync. Runs in the background.

    A trigger while a sync is already in flight is coalesced into it.

    Returns:
        dict: Message describing what happened
    """
    if not CALENDAR_FEED_URL:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"error": "not_configured", "message": "No calendar feed URL configured"},
        )

    if is_sync_running():
        logger.info("calendar_sync_trigger_coalesced")
        return {"message": "Calendar sync already in progress"}

    background_tasks.add_task(run_calendar_sync, engine=engine)
    logger.info("calendar_sync_triggered", feed=CALENDAR_FEED_NAME)
    return {"message": "Calendar sync scheduled"}
