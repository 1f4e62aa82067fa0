"""Opt-in trace observer for requests, responses, errors and cache events.

Every payload passes through ``redaction`` before it reaches the sink, so the
bearer credential never leaves the executor in clear text.
"""

from __future__ import annotations

import itertools
import logging
from datetime import UTC, datetime
from time import perf_counter
from typing import Any, Callable, Literal, Mapping

from ..config.models import DebugSettings
from . import fields
from .context import log_context
from .redaction import redact_body, redact_headers

DebugSink = Callable[[str, Mapping[str, Any] | None], None]
CacheAction = Literal["hit", "miss", "set", "evict", "expire"]

_LOGGER = logging.getLogger(__name__)


def logging_sink(message: str, data: Mapping[str, Any] | None) -> None:
    """Default sink: emit through stdlib logging with data bound as context."""
    with log_context(dict(data or {})):
        _LOGGER.debug(message)


class DebugLogger:
    """Structured trace emitter toggled per category by ``DebugSettings``."""

    def __init__(
        self,
        settings: DebugSettings | None = None,
        *,
        sink: DebugSink | None = None,
    ) -> None:
        self._settings = DebugSettings(enabled=True) if settings is None else settings
        self._sink = logging_sink if sink is None else sink
        self._start_times: dict[str, float] = {}
        self._ids = itertools.count(1)

    @property
    def settings(self) -> DebugSettings:
        """Return the active category toggles."""
        return self._settings

    def log_request(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str] | None = None,
        body: Any = None,
    ) -> str:
        """Emit one request-start event and return its correlation id."""
        request_id = f"{method}-{url}-{next(self._ids)}"
        if not (self._settings.enabled and self._settings.log_requests):
            return request_id
        if self._settings.log_timing:
            self._start_times[request_id] = perf_counter()
        data: dict[str, Any] = {
            fields.EVENT: fields.REQUEST_EVENT,
            fields.METHOD: method,
            fields.URL: url,
            fields.HEADERS: redact_headers(headers),
        }
        if body is not None:
            data[fields.BODY] = redact_body(body)
        self._emit("REQUEST", f"{method} {url}", data)
        return request_id

    def log_response(
        self,
        request_id: str,
        status: int,
        headers: Mapping[str, str] | None = None,
        body: Any = None,
    ) -> None:
        """Emit one response event, with duration when timing is enabled."""
        started = self.discard(request_id)
        if not (self._settings.enabled and self._settings.log_responses):
            return
        data: dict[str, Any] = {
            fields.EVENT: fields.RESPONSE_EVENT,
            fields.STATUS: status,
            fields.HEADERS: redact_headers(headers),
        }
        message = f"Status {status}"
        if self._settings.log_timing and started is not None:
            duration_ms = round((perf_counter() - started) * 1000, 3)
            data[fields.DURATION_MS] = duration_ms
            message = f"{message} ({duration_ms}ms)"
        if body is not None:
            data[fields.BODY] = redact_body(body)
        self._emit("RESPONSE", message, data)

    def log_error(
        self,
        error: BaseException,
        context: Mapping[str, Any] | None = None,
        *,
        request_id: str | None = None,
    ) -> None:
        """Emit one error event; closes the trace opened by ``request_id``."""
        started = self.discard(request_id) if request_id is not None else None
        if not (self._settings.enabled and self._settings.log_errors):
            return
        to_dict = getattr(error, "to_dict", None)
        data: dict[str, Any] = {
            fields.EVENT: fields.ERROR_EVENT,
            "error_type": type(error).__name__,
        }
        if callable(to_dict):
            record = to_dict()
            data[fields.ERROR_KIND] = record.get("kind")
            data[fields.ERROR_CODE] = record.get("code")
            data["error"] = record
        if context:
            data["error_context"] = dict(context)
        if self._settings.log_timing and started is not None:
            data[fields.DURATION_MS] = round((perf_counter() - started) * 1000, 3)
        self._emit("ERROR", str(error), data)

    def discard(self, request_id: str) -> float | None:
        """Forget the start time of ``request_id`` and return it, if any."""
        return self._start_times.pop(request_id, None)

    @property
    def open_traces(self) -> int:
        """Return how many request traces are still waiting for an outcome."""
        return len(self._start_times)

    def log_cache(self, action: CacheAction, key: str, data: Mapping[str, Any] | None = None) -> None:
        """Emit one cache event (hit, miss, set, evict, expire)."""
        if not (self._settings.enabled and self._settings.log_caching):
            return
        payload: dict[str, Any] = {
            fields.EVENT: fields.CACHE_EVENT,
            fields.CACHE_ACTION: action,
            fields.CACHE_KEY: key,
        }
        if data:
            payload.update(redact_body(dict(data)))
        self._emit("CACHE", f"{action.upper()} {key}", payload)

    def _emit(self, category: str, message: str, data: Mapping[str, Any]) -> None:
        timestamp = datetime.now(UTC).isoformat()
        payload = {fields.CATEGORY: category, fields.TIMESTAMP: timestamp, **data}
        self._sink(f"[SpecStory {category}] {timestamp} {message}", payload)
