"""Canonical error types for SpecStory SDK calls.

Failures are modelled as one exception type tagged with a closed
``ErrorKind``. Call sites dispatch with ``match error.kind:`` rather than by
exception subclass, so the set of outcomes stays exhaustive and visible in one
place.
"""

from __future__ import annotations

import traceback
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Mapping, Sequence


class ErrorKind(str, Enum):
    """Closed set of failure kinds surfaced by the request executor."""

    NETWORK = "network"
    TIMEOUT = "timeout"
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    PERMISSION = "permission"
    NOT_FOUND = "not_found"
    RATE_LIMIT = "rate_limit"
    SERVER = "server"
    GRAPHQL = "graphql"
    UNKNOWN = "unknown"


RETRYABLE_KINDS: frozenset[ErrorKind] = frozenset(
    {
        ErrorKind.NETWORK,
        ErrorKind.TIMEOUT,
        ErrorKind.RATE_LIMIT,
        ErrorKind.SERVER,
    }
)


@dataclass(frozen=True, slots=True)
class ErrorContext:
    """Diagnostic detail captured for one failed attempt."""

    method: str
    url: str
    timestamp: datetime
    duration_ms: float
    retry_count: int
    request_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return a plain JSON-friendly mapping."""
        return {
            "method": self.method,
            "url": self.url,
            "timestamp": self.timestamp.isoformat(),
            "duration_ms": self.duration_ms,
            "retry_count": self.retry_count,
            "request_id": self.request_id,
        }


@dataclass(frozen=True, eq=False)
class SpecStoryError(Exception):
    """Single typed failure raised at the SDK boundary."""

    message: str
    kind: ErrorKind
    code: str
    suggestion: str = ""
    status: int | None = None
    details: Mapping[str, Any] | None = None
    context: ErrorContext | None = None
    request_id: str | None = None
    retry_after: datetime | None = None
    timeout_ms: int | None = None
    graphql_errors: Sequence[Mapping[str, Any]] = field(default_factory=tuple)
    query: str | None = None
    variables: Mapping[str, Any] | None = None
    cause: BaseException | None = None

    def __str__(self) -> str:
        """Return the human-readable error message."""
        return self.message

    @property
    def retryable(self) -> bool:
        """Return True for kinds the executor may retry transparently."""
        return self.kind in RETRYABLE_KINDS

    def to_dict(self) -> dict[str, Any]:
        """Serialize into a plain structured record for logs and telemetry."""
        record: dict[str, Any] = {
            "kind": self.kind.value,
            "code": self.code,
            "message": self.message,
            "status": self.status,
            "suggestion": self.suggestion,
            "details": dict(self.details) if self.details else None,
            "context": self.context.to_dict() if self.context else None,
            "request_id": self.request_id,
            "stack": _format_stack(self),
        }
        match self.kind:
            case ErrorKind.RATE_LIMIT:
                record["retry_after"] = (
                    self.retry_after.isoformat() if self.retry_after else None
                )
            case ErrorKind.TIMEOUT:
                record["timeout_ms"] = self.timeout_ms
            case ErrorKind.GRAPHQL:
                record["errors"] = [dict(item) for item in self.graphql_errors]
                record["query"] = self.query
                record["variables"] = (
                    dict(self.variables) if self.variables is not None else None
                )
            case ErrorKind.NETWORK if self.cause is not None:
                record["cause"] = f"{type(self.cause).__name__}: {self.cause}"
        return record


def _format_stack(error: BaseException) -> str | None:
    """Return the formatted traceback once the error has been raised."""
    if error.__traceback__ is None:
        return None
    return "".join(traceback.format_tb(error.__traceback__))
