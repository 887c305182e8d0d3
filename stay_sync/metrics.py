"""
Prometheus metrics for calendar sync, status sweeps and reservation writes.

Metrics are exposed via the /metrics endpoint for scraping by Prometheus.

Example:
    >>> from stay_sync.metrics import poll_duration, events_synced
    >>> with poll_duration.labels(feed="airbnb").time():
    ...     text = fetch_feed(url)
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# =============================================================================
# Calendar Feed Metrics
# =============================================================================

poll_total = Counter(
    "stays_feed_polls_total",
    "Total number of calendar feed polls (success and failure)",
    ["feed", "status"],
)
"""
Counter for feed polling operations.

Labels:
    feed: Configured feed name (e.g. airbnb)
    status: success or failure
"""

poll_duration = Histogram(
    "stays_feed_poll_duration_seconds",
    "Duration of calendar feed polls in seconds",
    ["feed"],
    buckets=(0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, float("inf")),
)

feed_requests = Counter(
    "stays_feed_requests_total",
    "Total HTTP requests made to calendar feeds",
    ["status_code"],
)
"""
Counter for feed HTTP requests.

Labels:
    status_code: HTTP status code, or "error" when no response was received
"""

feed_latency = Histogram(
    "stays_feed_latency_seconds",
    "Calendar feed request latency in seconds",
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, float("inf")),
)

events_synced = Gauge(
    "stays_feed_events",
    "Number of external events in the last committed snapshot",
    ["feed"],
)

events_skipped = Counter(
    "stays_feed_events_skipped_total",
    "Malformed feed events skipped while parsing",
    ["feed"],
)

sync_failures = Counter(
    "stays_feed_sync_failures_total",
    "Calendar syncs that kept the previous snapshot",
    ["feed", "reason"],
)
"""
Counter for failed syncs.

Labels:
    feed: Configured feed name
    reason: network, timeout, http, empty or unparseable
"""

# =============================================================================
# Reservation Metrics
# =============================================================================

status_transitions = Counter(
    "stays_status_transitions_total",
    "Reservation status changes applied by the sweep",
    ["to_status"],
)

sweep_skipped = Counter(
    "stays_sweep_skipped_total",
    "Reservations skipped by the sweep because of an impossible date range",
)

conflicts_rejected = Counter(
    "stays_conflicts_rejected_total",
    "Reservation writes rejected because of an overlapping interval",
    ["kind"],
)
"""
Counter for rejected writes.

Labels:
    kind: reservation or external, the source of the offending interval
"""
