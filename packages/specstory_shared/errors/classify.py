"""Deterministic mapping from HTTP failure responses to typed SDK errors."""

from __future__ import annotations

from dataclasses import replace
from datetime import UTC, datetime, timedelta
from typing import Mapping

from . import codes
from .factories import status_error
from .types import ErrorContext, ErrorKind, SpecStoryError

REQUEST_ID_HEADER = "x-request-id"
RETRY_AFTER_HEADER = "retry-after"

_STATUS_TABLE: dict[int, tuple[ErrorKind, str, str]] = {
    400: (
        ErrorKind.VALIDATION,
        codes.VALIDATION_ERROR,
        "Bad Request - The request was invalid",
    ),
    401: (
        ErrorKind.AUTHENTICATION,
        codes.AUTHENTICATION_ERROR,
        "Unauthorized - Invalid API key",
    ),
    403: (
        ErrorKind.PERMISSION,
        codes.PERMISSION_DENIED,
        "Forbidden - You do not have permission to access this resource",
    ),
    404: (
        ErrorKind.NOT_FOUND,
        codes.NOT_FOUND,
        "Not Found - The requested resource does not exist",
    ),
    429: (
        ErrorKind.RATE_LIMIT,
        codes.RATE_LIMITED,
        "Too Many Requests - Rate limit exceeded",
    ),
    500: (
        ErrorKind.SERVER,
        codes.SERVER_ERROR,
        "Internal Server Error - Something went wrong on our end",
    ),
    502: (
        ErrorKind.SERVER,
        codes.SERVER_ERROR,
        "Bad Gateway - The server received an invalid response",
    ),
    503: (
        ErrorKind.SERVER,
        codes.SERVER_ERROR,
        "Service Unavailable - The service is temporarily unavailable",
    ),
    504: (
        ErrorKind.SERVER,
        codes.SERVER_ERROR,
        "Gateway Timeout - The server did not respond in time",
    ),
}


def classify_status(
    status_code: int,
    headers: Mapping[str, str],
    *,
    context: ErrorContext | None = None,
    now: datetime | None = None,
) -> SpecStoryError:
    """Map one non-2xx status and its headers to a typed error."""
    lowered = {str(key).lower(): value for key, value in headers.items()}
    request_id = lowered.get(REQUEST_ID_HEADER) or None
    if context is not None and request_id is not None:
        context = replace(context, request_id=request_id)

    kind, code, message = _STATUS_TABLE.get(
        status_code,
        (ErrorKind.UNKNOWN, codes.UNKNOWN_ERROR, f"HTTP Error {status_code}"),
    )

    retry_after = None
    if kind is ErrorKind.RATE_LIMIT:
        retry_after = parse_retry_after(lowered.get(RETRY_AFTER_HEADER), now=now)

    return status_error(
        kind,
        message,
        status=status_code,
        code=code,
        context=context,
        request_id=request_id,
        retry_after=retry_after,
    )


def parse_retry_after(value: str | None, *, now: datetime | None = None) -> datetime | None:
    """Return the absolute retry instant for a ``Retry-After`` seconds value."""
    if value is None:
        return None
    try:
        seconds = float(value.strip())
    except ValueError:
        return None
    if seconds < 0:
        return None
    base = now if now is not None else datetime.now(UTC)
    return base + timedelta(seconds=seconds)
