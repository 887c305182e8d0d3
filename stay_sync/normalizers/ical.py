"""
Normalize an iCalendar feed into blocked date intervals.

Each VEVENT is handled on its own and yields either a ``ParsedEvent`` or a
``ParseError``; one broken block never sinks the rest of the feed.
"""

from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Iterable, Optional, Union

import structlog
from icalendar import Calendar

from stay_sync.errors import SyncFailure
from stay_sync.utils.datetime import to_local

logger = structlog.get_logger(__name__)

DEFAULT_SUMMARY = "Reserved"

# "HM1234567890@airbnb.com"
UID_CODE_RE = re.compile(r"^(HM[A-Z0-9]+)@", re.IGNORECASE)
# ".../hosting/reservations/details/HMABC123 ..."
DESCRIPTION_CODE_RE = re.compile(r"reservations/details/(HM[ A-Z0-9-]+)", re.IGNORECASE)


@dataclass(frozen=True)
class ParsedEvent:
    uid: str
    start: date
    end: date
    summary: str = DEFAULT_SUMMARY
    reservation_code: Optional[str] = None

    def to_row(self) -> dict[str, Any]:
        return {
            "uid": self.uid,
            "start": self.start,
            "end": self.end,
            "summary": self.summary,
            "status": "blocked",
            "reservation_code": self.reservation_code,
        }


@dataclass(frozen=True)
class ParseError:
    reason: str
    uid: Optional[str] = None


EventParseResult = Union[ParsedEvent, ParseError]


def to_day(value: Any) -> date:
    """
    Reduce an iCalendar DATE or DATE-TIME to a property-local date.

    Args:
        value: ``date`` or ``datetime`` as decoded by icalendar

    Returns:
        date: Calendar day at the property

    Raises:
        TypeError: For anything else (e.g. a bare time)
    """
    if isinstance(value, datetime):
        return to_local(value).date()
    if isinstance(value, date):
        return value
    raise TypeError(f"Unsupported date value: {value!r}")


def extract_reservation_code(uid: Optional[str], description: Optional[str]) -> Optional[str]:
    """
    Channel confirmation code carried by the event, if any.

    The DESCRIPTION link wins over the UID prefix when both are present.

    Example:
        >>> extract_reservation_code("HMABC123@airbnb.com", None)
        'HMABC123'
    """
    code = None
    if uid:
        match = UID_CODE_RE.match(uid)
        if match:
            code = match.group(1).upper()
    if description:
        match = DESCRIPTION_CODE_RE.search(description)
        if match:
            code = re.sub(r"[^A-Z0-9]", "", match.group(1), flags=re.IGNORECASE).upper()
    return code


def synthetic_uid(start: date, end: date, summary: str) -> str:
    """Deterministic stand-in for events without a UID, stable across syncs."""
    digest = hashlib.sha1(f"{start.isoformat()}|{end.isoformat()}|{summary}".encode()).hexdigest()
    return f"generated-{digest[:16]}"


def parse_event(component: Any) -> EventParseResult:
    """
    Turn one VEVENT into a blocked interval.

    End resolution: DTEND, else DTSTART + DURATION, else one day. A timed
    event that starts and ends on the same local day still blocks that day.

    Args:
        component: icalendar ``Event``

    Returns:
        EventParseResult: ParsedEvent on success, ParseError otherwise
    """
    raw_uid = component.get("uid")
    uid = str(raw_uid).strip() if raw_uid else None

    dtstart = component.get("dtstart")
    if dtstart is None:
        return ParseError(reason="missing DTSTART", uid=uid)

    try:
        start = to_day(dtstart.dt)
        dtend = component.get("dtend")
        duration = component.get("duration")
        if dtend is not None:
            end = to_day(dtend.dt)
        elif duration is not None:
            end = to_day(dtstart.dt + duration.dt)
        else:
            end = start + timedelta(days=1)
    except (TypeError, ValueError, AttributeError) as err:
        return ParseError(reason=f"bad date: {err}", uid=uid)

    if end < start:
        return ParseError(reason=f"DTEND {end} before DTSTART {start}", uid=uid)
    if end == start:
        end = start + timedelta(days=1)

    summary = str(component.get("summary") or "").strip() or DEFAULT_SUMMARY
    description = component.get("description")

    return ParsedEvent(
        uid=uid or synthetic_uid(start, end, summary),
        start=start,
        end=end,
        summary=summary,
        reservation_code=extract_reservation_code(
            uid, str(description) if description else None
        ),
    )


def parse_feed(text: str) -> list[EventParseResult]:
    """
    Parse a whole feed document into per-event results.

    Args:
        text: Raw iCalendar text

    Returns:
        list[EventParseResult]: One entry per VEVENT, in feed order

    Raises:
        SyncFailure: The document is not iCalendar at all
    """
    try:
        calendar = Calendar.from_ical(text)
    except Exception as err:
        raise SyncFailure(f"unparseable feed: {err}", kind="unparseable") from err

    if calendar.name != "VCALENDAR":
        raise SyncFailure(f"unexpected top-level component {calendar.name}", kind="unparseable")

    return [parse_event(component) for component in calendar.walk("VEVENT")]


def dedupe_events(results: Iterable[EventParseResult]) -> tuple[list[ParsedEvent], list[ParseError]]:
    """
    Split parse results, keeping the last occurrence of each UID.

    Returns:
        tuple[list[ParsedEvent], list[ParseError]]: Unique events ordered by
        start date, and the errors
    """
    events: dict[str, ParsedEvent] = {}
    errors: list[ParseError] = []

    for result in results:
        if isinstance(result, ParseError):
            errors.append(result)
        else:
            events[result.uid] = result

    for error in errors:
        logger.warning("feed_event_skipped", uid=error.uid, reason=error.reason)

    return sorted(events.values(), key=lambda e: (e.start, e.uid)), errors
