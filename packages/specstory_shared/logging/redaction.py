"""Secret redaction for headers and bodies before they reach any log sink."""

from __future__ import annotations

from typing import Any, Mapping

REDACTED = "[REDACTED]"

SENSITIVE_HEADERS: frozenset[str] = frozenset(
    {"authorization", "proxy-authorization", "x-api-key", "cookie", "set-cookie"}
)
SENSITIVE_FIELD_MARKERS: tuple[str, ...] = (
    "password",
    "token",
    "secret",
    "apikey",
    "api_key",
    "authorization",
)


def redact_headers(headers: Mapping[str, str] | None) -> dict[str, str] | None:
    """Return a copy of ``headers`` with credential-bearing values masked."""
    if headers is None:
        return None
    sanitized: dict[str, str] = {}
    for key, value in headers.items():
        lowered = key.lower()
        if lowered in ("authorization", "proxy-authorization"):
            scheme = value.split(" ", 1)[0] if " " in value else ""
            sanitized[key] = f"{scheme} {REDACTED}".strip()
        elif lowered in SENSITIVE_HEADERS or is_sensitive_field(lowered):
            sanitized[key] = REDACTED
        else:
            sanitized[key] = value
    return sanitized


def redact_body(body: Any) -> Any:
    """Return a deep copy of ``body`` with secret-looking fields masked."""
    if isinstance(body, Mapping):
        return {
            key: REDACTED if is_sensitive_field(str(key)) else redact_body(value)
            for key, value in body.items()
        }
    if isinstance(body, (list, tuple)):
        return [redact_body(item) for item in body]
    return body


def is_sensitive_field(name: str) -> bool:
    """Return True when a field name matches a common secret pattern."""
    lowered = name.lower()
    return any(marker in lowered for marker in SENSITIVE_FIELD_MARKERS)
