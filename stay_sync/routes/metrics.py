"""
Prometheus scrape endpoint.

Exposes the counters and histograms from ``stay_sync.metrics`` (feed polls,
sync failures, sweep transitions, rejected conflicts) in the text format.

Example:
    GET /metrics

    Response:
        # HELP stays_feed_polls_total Total number of calendar feed polls (success and failure)
        # TYPE stays_feed_polls_total counter
        stays_feed_polls_total{feed="airbnb",status="success"} 24.0
        ...
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter()


@router.get("/metrics", response_class=Response)
async def metrics() -> Any:
    """
    Render the default registry for Prometheus.

    Returns:
        Response: Exposition text with the Prometheus content type
    """
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
