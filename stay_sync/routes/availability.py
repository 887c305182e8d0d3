from datetime import timedelta
from typing import Any, Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.engine import Engine

from stay_sync.dependencies import get_db_engine
from stay_sync.errors import StayError, ValidationError
from stay_sync.intervals import BlockedInterval
from stay_sync.routes._helpers import http_error, parse_date_or_400
from stay_sync.schemas.calendar import AvailabilityOut
from stay_sync.services.availability import blocked_dates
from stay_sync.utils.datetime import local_today, utc_now

logger = structlog.get_logger(__name__)
router = APIRouter()

DEFAULT_WINDOW_DAYS = 365
MAX_WINDOW_DAYS = 3 * 366

# What a public visitor sees in place of a local stay's guest
RESERVED_LABEL = "Reserved"


def public_interval(interval: BlockedInterval) -> dict[str, Any]:
    """
    Serialize an interval for the public availability view.

    Local stays are anonymized: no guest name, reservation id or booking
    code leaves the service, only the blocked range.
    """
    if interval.kind == "reservation":
        return {
            "kind": interval.kind,
            "start": interval.start,
            "end": interval.end,
            "label": RESERVED_LABEL,
        }
    return {
        "kind": interval.kind,
        "ref": interval.ref,
        "start": interval.start,
        "end": interval.end,
        "label": interval.label,
        "reservation_code": interval.reservation_code,
    }


@router.get("/availability", response_model=AvailabilityOut)
def get_availability(
    from_: Optional[str] = Query(None, alias="from", description="First day, YYYY-MM-DD"),
    to: Optional[str] = Query(None, description="Day after the last day, YYYY-MM-DD"),
    engine: Engine = Depends(get_db_engine),
) -> Any:
    """
    Blocked days and intervals in ``[from, to)``, merging stays and feed events.

    Args:
        from_: Window start (default today at the property)
        to: Exclusive window end (default from + 365 days)
        engine: Database engine (injected)

    Returns:
        AvailabilityOut: Sorted blocked days and the raw intervals
    """
    try:
        range_start = parse_date_or_400(from_, "from") or local_today(utc_now())
        range_end = parse_date_or_400(to, "to") or range_start + timedelta(days=DEFAULT_WINDOW_DAYS)

        if range_end < range_start:
            raise ValidationError("to must not be before from", field="to")
        if (range_end - range_start).days > MAX_WINDOW_DAYS:
            raise ValidationError(f"window is limited to {MAX_WINDOW_DAYS} days", field="to")

        with engine.connect() as conn:
            availability = blocked_dates(conn, range_start, range_end)

        return {
            "from": range_start,
            "to": range_end,
            "blocked_dates": sorted(availability.dates),
            "intervals": [public_interval(interval) for interval in availability.intervals],
        }
    except StayError as err:
        raise http_error(err)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("availability_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")
