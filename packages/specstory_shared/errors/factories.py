"""Factory helpers for creating consistent SDK errors."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Sequence

from . import codes
from .types import ErrorContext, ErrorKind, SpecStoryError

API_KEYS_URL = "https://cloud.specstory.com/api-keys"

SUGGESTIONS: dict[ErrorKind, str] = {
    ErrorKind.NETWORK: "Check your network connection and that the base URL is reachable.",
    ErrorKind.TIMEOUT: "Retry the request or raise the timeout for slow operations.",
    ErrorKind.VALIDATION: "Check the request parameters and body against the API reference.",
    ErrorKind.AUTHENTICATION: f"Verify your API key or create a new one at {API_KEYS_URL}.",
    ErrorKind.PERMISSION: "Confirm the API key has access to this project or resource.",
    ErrorKind.NOT_FOUND: "Check that the project or session id exists.",
    ErrorKind.RATE_LIMIT: "Slow down and retry after the time indicated by the server.",
    ErrorKind.SERVER: "The service is having problems; retry later.",
    ErrorKind.GRAPHQL: "Inspect the returned GraphQL errors and fix the query or variables.",
    ErrorKind.UNKNOWN: "Retry the request; contact support if the problem persists.",
}


def network_error(
    message: str,
    *,
    cause: BaseException | None = None,
    context: ErrorContext | None = None,
    code: str = codes.NETWORK_ERROR,
) -> SpecStoryError:
    """Create a transport-failure error wrapping the underlying cause."""
    return SpecStoryError(
        message=message,
        kind=ErrorKind.NETWORK,
        code=code,
        suggestion=SUGGESTIONS[ErrorKind.NETWORK],
        context=context,
        cause=cause,
    )


def timeout_error(
    timeout_ms: int,
    *,
    context: ErrorContext | None = None,
    cause: BaseException | None = None,
) -> SpecStoryError:
    """Create a deadline-exceeded error for one request."""
    return SpecStoryError(
        message=f"Request timed out after {timeout_ms}ms",
        kind=ErrorKind.TIMEOUT,
        code=codes.TIMEOUT,
        suggestion=SUGGESTIONS[ErrorKind.TIMEOUT],
        context=context,
        timeout_ms=timeout_ms,
        cause=cause,
    )


def status_error(
    kind: ErrorKind,
    message: str,
    *,
    status: int,
    code: str,
    context: ErrorContext | None = None,
    request_id: str | None = None,
    retry_after: datetime | None = None,
    details: Mapping[str, Any] | None = None,
) -> SpecStoryError:
    """Create an error classified from an HTTP status code."""
    return SpecStoryError(
        message=message,
        kind=kind,
        code=code,
        suggestion=SUGGESTIONS[kind],
        status=status,
        details=details,
        context=context,
        request_id=request_id,
        retry_after=retry_after,
    )


def graphql_error(
    errors: Sequence[Any],
    *,
    query: str,
    variables: Mapping[str, Any] | None,
    message: str | None = None,
    code: str = codes.GRAPHQL_ERROR,
) -> SpecStoryError:
    """Create an application-level GraphQL failure from a 2xx response.

    Entries that are not objects are kept as ``{"message": str(entry)}``.
    """
    items = tuple(
        dict(item) if isinstance(item, Mapping) else {"message": str(item)} for item in errors
    )
    if message is None:
        summary = "; ".join(str(item.get("message", "unknown error")) for item in items)
        message = f"GraphQL query failed: {summary}"
    return SpecStoryError(
        message=message,
        kind=ErrorKind.GRAPHQL,
        code=code,
        suggestion=SUGGESTIONS[ErrorKind.GRAPHQL],
        graphql_errors=items,
        query=query,
        variables=dict(variables) if variables is not None else None,
    )


def invalid_json_error(
    *, status: int, context: ErrorContext | None, cause: BaseException
) -> SpecStoryError:
    """Create an error for a successful response whose body is not JSON."""
    return SpecStoryError(
        message=f"Invalid JSON in response body (HTTP {status})",
        kind=ErrorKind.UNKNOWN,
        code=codes.INVALID_JSON,
        suggestion=SUGGESTIONS[ErrorKind.UNKNOWN],
        status=status,
        context=context,
        cause=cause,
    )


def invalid_body_error(*, method: str, url: str, cause: BaseException) -> SpecStoryError:
    """Create an error for a request body that cannot be JSON-encoded."""
    return SpecStoryError(
        message=f"Request body for {method} {url} is not JSON-serializable: {cause}",
        kind=ErrorKind.VALIDATION,
        code=codes.VALIDATION_ERROR,
        suggestion=SUGGESTIONS[ErrorKind.VALIDATION],
        cause=cause,
    )


def invalid_url_error(url: str, *, cause: BaseException) -> SpecStoryError:
    """Create an error for a request URL that httpx refuses to parse."""
    return SpecStoryError(
        message=f"Invalid request URL {url!r}: {cause}",
        kind=ErrorKind.VALIDATION,
        code=codes.INVALID_URL,
        suggestion="Check the configured base URL and the identifiers used in the request path.",
        cause=cause,
    )


def invalid_response_error(model: str, *, cause: BaseException) -> SpecStoryError:
    """Create an error for a 2xx body that does not match the expected shape."""
    return SpecStoryError(
        message=f"Unexpected response shape for {model}: {cause}",
        kind=ErrorKind.UNKNOWN,
        code=codes.INVALID_RESPONSE,
        suggestion=SUGGESTIONS[ErrorKind.UNKNOWN],
        cause=cause,
    )
