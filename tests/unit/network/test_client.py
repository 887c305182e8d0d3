from unittest.mock import Mock, patch

import pytest
import requests

from stay_sync.errors import SyncFailure
from stay_sync.network.client import MAX_RETRIES, fetch_feed, redact_url, should_retry

FEED_URL = "https://calendar.example.com/ical/123.ics?s=secret-token"


def response(status_code: int, text: str = "") -> Mock:
    res = Mock(status_code=status_code, text=text)
    if status_code >= 400:
        res.raise_for_status.side_effect = requests.HTTPError(f"{status_code} error", response=res)
    else:
        res.raise_for_status.return_value = None
    return res


@pytest.mark.unit
@patch("stay_sync.network.client.requests.get")
def test_fetch_feed_success(mock_get: Mock) -> None:
    """
    Test that fetch_feed returns the body of a 200 response.

    Args:
        mock_get (Mock): Mocked requests.get call.
    """
    mock_get.return_value = response(200, "BEGIN:VCALENDAR\nEND:VCALENDAR\n")

    body = fetch_feed(FEED_URL)

    assert body.startswith("BEGIN:VCALENDAR")
    assert mock_get.call_count == 1
    assert mock_get.call_args.kwargs["timeout"] > 0


@pytest.mark.unit
@patch("stay_sync.network.client.time.sleep")
@patch("stay_sync.network.client.requests.get")
def test_fetch_feed_retries_server_errors(mock_get: Mock, mock_sleep: Mock) -> None:
    """A 503 followed by a 200 succeeds on the second attempt."""
    mock_get.side_effect = [response(503), response(200, "BEGIN:VCALENDAR")]

    body = fetch_feed(FEED_URL)

    assert body == "BEGIN:VCALENDAR"
    assert mock_get.call_count == 2
    mock_sleep.assert_called_once()


@pytest.mark.unit
@patch("stay_sync.network.client.time.sleep")
@patch("stay_sync.network.client.requests.get")
def test_fetch_feed_does_not_retry_client_errors(mock_get: Mock, mock_sleep: Mock) -> None:
    mock_get.return_value = response(404)

    with pytest.raises(SyncFailure) as exc_info:
        fetch_feed(FEED_URL)

    assert exc_info.value.kind == "http"
    assert "404" in exc_info.value.reason
    assert mock_get.call_count == 1
    mock_sleep.assert_not_called()


@pytest.mark.unit
@patch("stay_sync.network.client.time.sleep")
@patch("stay_sync.network.client.requests.get")
def test_fetch_feed_gives_up_after_max_retries_on_timeout(mock_get: Mock, mock_sleep: Mock) -> None:
    mock_get.side_effect = requests.Timeout("read timed out")

    with pytest.raises(SyncFailure) as exc_info:
        fetch_feed(FEED_URL, timeout=0.5)

    assert exc_info.value.kind == "timeout"
    assert mock_get.call_count == MAX_RETRIES + 1
    assert mock_sleep.call_count == MAX_RETRIES


@pytest.mark.unit
@patch("stay_sync.network.client.time.sleep")
@patch("stay_sync.network.client.requests.get")
def test_fetch_feed_connection_error_is_network_failure(mock_get: Mock, mock_sleep: Mock) -> None:
    mock_get.side_effect = requests.ConnectionError("name resolution failed")

    with pytest.raises(SyncFailure) as exc_info:
        fetch_feed(FEED_URL)

    assert exc_info.value.kind == "network"
    assert "secret-token" not in exc_info.value.reason


@pytest.mark.unit
def test_should_retry_rules() -> None:
    assert should_retry(response(429), None)
    assert should_retry(response(502), None)
    assert should_retry(None, requests.Timeout())
    assert not should_retry(response(403), None)
    assert not should_retry(None, requests.TooManyRedirects())


@pytest.mark.unit
def test_redact_url_drops_query_string() -> None:
    assert redact_url(FEED_URL) == "https://calendar.example.com/ical/123.ics"
    assert redact_url("https://example.com/feed.ics") == "https://example.com/feed.ics"
