"""
Internal helper functions for route handlers.

Maps domain errors to HTTP responses so the handlers stay short.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import HTTPException, status

from stay_sync.errors import ConflictError, NotFoundError, StayError, ValidationError

STATUS_CODES: dict[type, int] = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    ConflictError: status.HTTP_409_CONFLICT,
    NotFoundError: status.HTTP_404_NOT_FOUND,
}


def http_error(err: StayError) -> HTTPException:
    """
    Build the HTTPException for a domain error.

    Args:
        err: ValidationError, ConflictError or NotFoundError

    Returns:
        HTTPException: With the error's structured body as detail
    """
    code = STATUS_CODES.get(type(err), status.HTTP_400_BAD_REQUEST)
    return HTTPException(status_code=code, detail=err.to_dict())


def parse_date_or_400(value: Optional[str], name: str) -> Optional[date]:
    """
    Parse an optional YYYY-MM-DD query parameter.

    Raises:
        HTTPException: 400 if the value is not a date
    """
    if value is None or value == "":
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise http_error(ValidationError(f"{name} must be YYYY-MM-DD", field=name))
