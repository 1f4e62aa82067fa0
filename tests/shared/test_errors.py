"""Unit tests for error classification and serialization."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from packages.specstory_shared.errors import (
    ErrorContext,
    ErrorKind,
    SpecStoryError,
    classify_status,
    codes,
    graphql_error,
    network_error,
    parse_retry_after,
    timeout_error,
)

_NOW = datetime(2025, 1, 9, 12, 0, tzinfo=UTC)


def _context() -> ErrorContext:
    return ErrorContext(
        method="GET",
        url="https://cloud.specstory.com/api/v1/projects",
        timestamp=_NOW,
        duration_ms=12.5,
        retry_count=0,
    )


@pytest.mark.parametrize(
    ("status", "kind", "code"),
    [
        (400, ErrorKind.VALIDATION, codes.VALIDATION_ERROR),
        (401, ErrorKind.AUTHENTICATION, codes.AUTHENTICATION_ERROR),
        (403, ErrorKind.PERMISSION, codes.PERMISSION_DENIED),
        (404, ErrorKind.NOT_FOUND, codes.NOT_FOUND),
        (429, ErrorKind.RATE_LIMIT, codes.RATE_LIMITED),
        (500, ErrorKind.SERVER, codes.SERVER_ERROR),
        (502, ErrorKind.SERVER, codes.SERVER_ERROR),
        (503, ErrorKind.SERVER, codes.SERVER_ERROR),
        (504, ErrorKind.SERVER, codes.SERVER_ERROR),
        (418, ErrorKind.UNKNOWN, codes.UNKNOWN_ERROR),
        (304, ErrorKind.UNKNOWN, codes.UNKNOWN_ERROR),
    ],
)
def test_classify_status_maps_table(status: int, kind: ErrorKind, code: str) -> None:
    """Each status should map onto its documented kind and code."""
    error = classify_status(status, {})

    assert error.kind is kind
    assert error.code == code
    assert error.status == status
    assert error.suggestion != ""


def test_classify_status_messages_follow_status_table() -> None:
    """Known statuses carry descriptive messages; others a generic one."""
    assert "request was invalid" in classify_status(400, {}).message
    assert "Invalid API key" in classify_status(401, {}).message
    assert classify_status(418, {}).message == "HTTP Error 418"


def test_classify_status_extracts_request_id_case_insensitively() -> None:
    """x-request-id should land on both the error and its context."""
    error = classify_status(500, {"X-Request-Id": "req-42"}, context=_context())

    assert error.request_id == "req-42"
    assert error.context is not None
    assert error.context.request_id == "req-42"


def test_rate_limit_computes_absolute_retry_instant() -> None:
    """Retry-After seconds should become now + seconds."""
    error = classify_status(429, {"retry-after": "30"}, now=_NOW)

    assert error.kind is ErrorKind.RATE_LIMIT
    assert error.retry_after == _NOW + timedelta(seconds=30)


def test_rate_limit_without_header_has_no_retry_instant() -> None:
    """Missing Retry-After leaves retry_after unset."""
    assert classify_status(429, {}).retry_after is None


@pytest.mark.parametrize("value", [None, "soon", "-5"])
def test_parse_retry_after_ignores_unusable_values(value: str | None) -> None:
    """Non-numeric or negative values should be ignored."""
    assert parse_retry_after(value, now=_NOW) is None


def test_timeout_error_message_carries_milliseconds() -> None:
    """Timeout errors report the configured deadline in milliseconds."""
    error = timeout_error(100, context=_context())

    assert error.kind is ErrorKind.TIMEOUT
    assert error.timeout_ms == 100
    assert "timed out after 100ms" in str(error)
    assert error.retryable is True


def test_graphql_error_summarizes_messages() -> None:
    """GraphQL errors should join messages and keep query and variables."""
    error = graphql_error(
        [{"message": "Field missing"}, {"message": "Bad filter"}],
        query="query { x }",
        variables={"limit": 5},
    )

    assert error.kind is ErrorKind.GRAPHQL
    assert error.message == "GraphQL query failed: Field missing; Bad filter"
    assert [item["message"] for item in error.graphql_errors] == [
        "Field missing",
        "Bad filter",
    ]
    assert error.query == "query { x }"
    assert error.variables == {"limit": 5}
    assert error.retryable is False


def test_graphql_error_accepts_non_object_entries() -> None:
    """Plain string errors are wrapped instead of failing the conversion."""
    error = graphql_error(["boom", {"message": "Bad filter"}], query="q", variables=None)

    assert error.message == "GraphQL query failed: boom; Bad filter"
    assert error.graphql_errors[0] == {"message": "boom"}


def test_to_dict_includes_kind_specific_fields() -> None:
    """Serialized records carry the base shape plus per-kind extras."""
    rate = classify_status(429, {"retry-after": "1"}, context=_context(), now=_NOW).to_dict()
    assert rate["kind"] == "rate_limit"
    assert rate["retry_after"] == (_NOW + timedelta(seconds=1)).isoformat()
    assert rate["context"]["method"] == "GET"
    assert rate["stack"] is None

    cause = ConnectionResetError("reset by peer")
    network = network_error("Request failed: reset by peer", cause=cause).to_dict()
    assert network["cause"] == "ConnectionResetError: reset by peer"

    gql = graphql_error([{"message": "x"}], query="q", variables=None).to_dict()
    assert gql["errors"] == [{"message": "x"}]
    assert gql["query"] == "q"


def test_to_dict_includes_stack_once_raised() -> None:
    """A raised error should serialize its traceback."""
    with pytest.raises(SpecStoryError) as exc_info:
        raise classify_status(404, {})

    assert exc_info.value.to_dict()["stack"]


def test_kind_dispatch_is_exhaustive_with_match() -> None:
    """Callers dispatch on the closed kind set with match statements."""

    def describe(error: SpecStoryError) -> str:
        match error.kind:
            case ErrorKind.NOT_FOUND:
                return "missing"
            case ErrorKind.RATE_LIMIT | ErrorKind.SERVER:
                return "retry later"
            case _:
                return "other"

    assert describe(classify_status(404, {})) == "missing"
    assert describe(classify_status(503, {})) == "retry later"
    assert describe(classify_status(400, {})) == "other"
