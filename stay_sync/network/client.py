"""
Client module for fetching the external calendar feed over HTTP
with bounded timeouts and retries.
"""

import time
from typing import Optional
from urllib.parse import urlsplit, urlunsplit

import requests
import structlog

from stay_sync.config import CALENDAR_FETCH_TIMEOUT
from stay_sync.errors import SyncFailure
from stay_sync.metrics import feed_latency, feed_requests

logger = structlog.get_logger(__name__)

MAX_RETRIES = 2
RETRY_DELAY = 2.0
HEADERS = {"Accept": "text/calendar, text/plain;q=0.9, */*;q=0.5"}


def redact_url(url: str) -> str:
    """
    Drop the query string (the feed's secret token) from a URL for display.

    Example:
        >>> redact_url("https://www.airbnb.com/calendar/ical/123.ics?s=secret")
        'https://www.airbnb.com/calendar/ical/123.ics'
    """
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))


def should_retry(res: Optional[requests.Response], err: Optional[Exception]) -> bool:
    """
    Determine whether the request should be retried based on response or error.

    Args:
        res (Optional[requests.Response]): Response object if available.
        err (Optional[Exception]): Exception raised by the request, if any.

    Returns:
        bool: True if the request should be retried, False otherwise.
    """
    if res is not None and res.status_code == 429:
        return True
    if isinstance(err, (requests.Timeout, requests.ConnectionError)):
        return True
    if res is not None and 500 <= res.status_code < 600:
        return True
    return False


def fetch_feed(url: str, timeout: float = CALENDAR_FETCH_TIMEOUT) -> str:
    """
    Download the calendar document.

    Retries up to MAX_RETRIES times on 429, 5xx, timeouts and connection
    errors, sleeping a little longer after each attempt. Every other failure
    is final.

    Args:
        url (str): Feed URL (may carry a secret token in the query string).
        timeout (float): Per-request timeout in seconds.

    Returns:
        str: Response body.

    Raises:
        SyncFailure: kind "timeout", "network" or "http" once retries are exhausted.
    """
    display_url = redact_url(url)
    retries = 0

    while True:
        res: Optional[requests.Response] = None
        try:
            logger.debug("Requesting feed %s attempt=%d", display_url, retries + 1)

            start_time = time.time()
            res = requests.get(url, headers=HEADERS, timeout=timeout)
            latency = time.time() - start_time

            feed_requests.labels(status_code=str(res.status_code)).inc()
            feed_latency.observe(latency)

            res.raise_for_status()
            return res.text

        except requests.RequestException as err:
            if res is None:
                feed_requests.labels(status_code="error").inc()

            logger.warning("Error fetching feed %s: %s", display_url, str(err))
            retries += 1
            if retries > MAX_RETRIES or not should_retry(res, err):
                raise _as_sync_failure(res, err) from err
            time.sleep(RETRY_DELAY * retries)


def _as_sync_failure(res: Optional[requests.Response], err: Exception) -> SyncFailure:
    if isinstance(err, requests.Timeout):
        return SyncFailure("feed request timed out", kind="timeout")
    if res is not None:
        return SyncFailure(f"feed returned HTTP {res.status_code}", kind="http")
    return SyncFailure(f"feed unreachable: {type(err).__name__}", kind="network")
