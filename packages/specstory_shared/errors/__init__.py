"""Public error API for SpecStory SDK callers."""

from . import codes
from .classify import classify_status, parse_retry_after
from .factories import (
    graphql_error,
    invalid_body_error,
    invalid_json_error,
    invalid_response_error,
    invalid_url_error,
    network_error,
    status_error,
    timeout_error,
)
from .types import RETRYABLE_KINDS, ErrorContext, ErrorKind, SpecStoryError

__all__ = [
    "ErrorContext",
    "ErrorKind",
    "RETRYABLE_KINDS",
    "SpecStoryError",
    "classify_status",
    "codes",
    "graphql_error",
    "invalid_body_error",
    "invalid_json_error",
    "invalid_response_error",
    "invalid_url_error",
    "network_error",
    "parse_retry_after",
    "status_error",
    "timeout_error",
]
