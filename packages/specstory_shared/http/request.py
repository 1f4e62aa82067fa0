"""Request descriptor and response wrapper types for the executor."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, Literal, Mapping, TypeVar

HttpMethod = Literal["GET", "POST", "PUT", "DELETE", "HEAD", "PATCH"]

ALLOWED_METHODS: frozenset[str] = frozenset(
    {"GET", "POST", "PUT", "DELETE", "HEAD", "PATCH"}
)
IDEMPOTENT_METHODS: frozenset[str] = frozenset({"GET", "PUT", "DELETE", "HEAD"})
RETRY_STATUS_CODES: frozenset[int] = frozenset({408, 429, 500, 502, 503, 504})

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class RequestDescriptor:
    """One logical API call, immutable once built."""

    method: HttpMethod
    path: str
    body: Any = None
    headers: Mapping[str, str] = field(default_factory=dict)
    params: Mapping[str, Any] | None = None
    timeout_seconds: float | None = None
    idempotency_key: str | None = None
    retries: int | None = None

    def __post_init__(self) -> None:
        """Normalize the method and reject unsupported verbs or overrides."""
        method = str(self.method).upper()
        if method not in ALLOWED_METHODS:
            raise ValueError(f"unsupported HTTP method: {self.method!r}")
        object.__setattr__(self, "method", method)
        object.__setattr__(self, "headers", dict(self.headers))
        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")
        if self.retries is not None and self.retries < 0:
            raise ValueError("retries must be zero or greater")

    @property
    def is_idempotent(self) -> bool:
        """Return True for methods that are safe to retry after transport failures."""
        return self.method in IDEMPOTENT_METHODS


@dataclass(frozen=True, slots=True)
class WithHeaders(Generic[T]):
    """Decoded payload plus the response headers it arrived with."""

    data: T
    headers: Mapping[str, str]
    status: int = 200
