from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from stay_sync.config import LOG_FORMAT, LOG_LEVEL, PROPERTY_TIMEZONE

# Libraries that log every request/poll at INFO
QUIET_LOGGERS = ("urllib3", "requests", "apscheduler.executors", "uvicorn.access")


def _add_property_timezone(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    # Timestamps are UTC; stay dates are not, so say which zone they are in
    event_dict.setdefault("tz", PROPERTY_TIMEZONE)
    return event_dict


def setup_logging() -> None:
    """
    Configure structlog and route stdlib loggers through the same renderer.

    ``LOG_FORMAT=json`` (default outside DEBUG) emits one JSON object per line
    for log aggregation; ``console`` prints colored key/value lines. Records
    from uvicorn, SQLAlchemy and APScheduler go through the same pipeline, so
    a request's ``request_id`` shows up on every line it caused.
    """
    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _add_property_timezone,
    ]

    renderer: Any = (
        structlog.processors.JSONRenderer()
        if LOG_FORMAT == "json"
        else structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
    )

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *([structlog.processors.format_exc_info] if LOG_FORMAT == "json" else []),
                renderer,
            ],
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(LOG_LEVEL)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
