"""
Request correlation middleware.

Every request gets an id, echoed back as ``X-Request-ID`` and bound into
structlog's context so all log lines emitted while serving it carry it.
"""

from __future__ import annotations

import uuid
from typing import Awaitable, Callable

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Assign a request id and expose it to handlers, logs and the client.

    An incoming ``X-Request-ID`` header is reused so a caller can correlate
    its own logs; otherwise a UUID4 is generated.

    Example:
        >>> app.add_middleware(RequestIDMiddleware)
        >>> # in a handler: request.state.request_id
        >>> # response headers: X-Request-ID: 550e8400-e29b-41d4-a716-446655440000
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
