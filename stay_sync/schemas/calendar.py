from datetime import date, datetime
from typing import Literal, Optional

from pydantic import Field

from stay_sync.schemas.reservations import CamelModel


class CalendarEventOut(CamelModel):
    uid: str
    start: date
    end: date = Field(..., description="Exclusive end day")
    status: Literal["blocked"] = "blocked"
    summary: str
    reservation_code: Optional[str] = None


class CalendarOut(CamelModel):
    events: list[CalendarEventOut]
    last_sync: Optional[datetime] = Field(None, description="Last successful snapshot commit")
    last_attempt: Optional[datetime] = None
    last_error: Optional[str] = None
    last_error_at: Optional[datetime] = None
    total_events: int
    calendar_url: Optional[str] = Field(None, description="Feed URL without its query string")


class BlockedIntervalOut(CamelModel):
    kind: Literal["reservation", "external"]
    ref: Optional[str] = Field(None, description="Feed uid; omitted for local stays")
    start: date
    end: date
    label: Optional[str] = None
    reservation_code: Optional[str] = None


class AvailabilityOut(CamelModel):
    from_: date = Field(..., alias="from")
    to: date = Field(..., description="Exclusive end of the window")
    blocked_dates: list[date]
    intervals: list[BlockedIntervalOut]
