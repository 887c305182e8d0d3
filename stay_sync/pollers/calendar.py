import structlog

from stay_sync.config import DEBUG
from stay_sync.metrics import poll_duration, poll_total
from stay_sync.network.client import fetch_feed, redact_url
from stay_sync.normalizers.ical import EventParseResult, parse_feed

logger = structlog.get_logger(__name__)


def poll_calendar(feed_name: str, url: str) -> list[EventParseResult]:
    """
    Fetch the external calendar feed and parse it into per-event results.

    Args:
        feed_name (str): Configured feed name
        url (str): Feed URL

    Returns:
        list[EventParseResult]: One result per VEVENT

    Raises:
        SyncFailure: Fetch failed or the document is not iCalendar
    """
    with poll_duration.labels(feed=feed_name).time():
        try:
            text = fetch_feed(url)

            if DEBUG:
                logger.debug("Feed head:\n%s", text[:500])

            results = parse_feed(text)

            logger.info(
                "Fetched %d calendar entries from %s [feed=%s]",
                len(results),
                redact_url(url),
                feed_name,
            )

            poll_total.labels(feed=feed_name, status="success").inc()
            return results
        except Exception:
            poll_total.labels(feed=feed_name, status="failure").inc()
            raise
