"""Shared plumbing for resource facades."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar
from urllib.parse import quote

from pydantic import BaseModel, ValidationError

from packages.specstory_shared.cache import ResponseCache
from packages.specstory_shared.errors import SpecStoryError, invalid_response_error
from packages.specstory_shared.http import RequestDescriptor, RequestExecutor, WithHeaders

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

NOT_MODIFIED = 304


@dataclass(frozen=True, slots=True)
class ConditionalRead(Generic[T]):
    """Outcome of a conditional GET that produced a payload."""

    data: T
    etag: str | None
    from_cache: bool = False


def path_segment(value: str) -> str:
    """Return ``value`` escaped for use as one URL path segment."""
    if value == "":
        raise ValueError("path identifiers must not be empty")
    return quote(value, safe="")


def envelope_data(payload: Any) -> dict[str, Any]:
    """Return the ``data`` object of a ``{"success", "data"}`` envelope."""
    if not isinstance(payload, dict):
        return {}
    data = payload.get("data")
    return data if isinstance(data, dict) else {}


def parse_model(model: type[M], payload: Any) -> M:
    """Validate ``payload`` as ``model``; shape mismatches become typed errors."""
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise invalid_response_error(model.__name__, cause=exc) from exc


def parse_rows(model: type[M], rows: Any) -> list[M]:
    """Validate a list of rows; a missing list is empty."""
    if rows is None:
        return []
    if not isinstance(rows, list):
        raise invalid_response_error(
            model.__name__, cause=TypeError(f"expected a list, got {type(rows).__name__}")
        )
    return [parse_model(model, row) for row in rows]


def is_not_modified(error: SpecStoryError) -> bool:
    """Return True when ``error`` is the 304 "unchanged" outcome."""
    return error.status == NOT_MODIFIED


class BaseResource:
    """Base class giving facades access to the executor and shared cache."""

    def __init__(
        self, executor: RequestExecutor, cache: ResponseCache[Any] | None = None
    ) -> None:
        self._executor = executor
        self._cache = cache

    async def _request(self, descriptor: RequestDescriptor) -> Any:
        return await self._executor.request(descriptor)

    async def _request_with_headers(self, descriptor: RequestDescriptor) -> WithHeaders[Any]:
        return await self._executor.request_with_headers(descriptor)

    def _invalidate(self, key: str) -> None:
        if self._cache is not None:
            self._cache.delete(key)

    async def _cached_conditional_get(
        self,
        key: str,
        ttl_seconds: float,
        descriptor: RequestDescriptor,
        parse: Callable[[Any, str | None], T],
        *,
        if_none_match: str | None = None,
    ) -> ConditionalRead[T] | None:
        """Run a validator-aware GET backed by the response cache.

        An explicit ``if_none_match`` is sent as-is and a 304 answer returns
        ``None``. Without one, the validator stored under ``key`` is sent and
        a 304 answer returns the cached payload, or ``None`` when the entry
        vanished while the request was in flight. A 2xx answer is parsed with
        ``parse(payload, etag)`` and overwrites the cache entry.
        """
        validator = if_none_match
        if validator is None and self._cache is not None:
            entry = self._cache.get_entry(key)
            if entry is not None:
                validator = entry.etag

        headers = dict(descriptor.headers)
        if validator:
            headers["If-None-Match"] = validator
        conditional = RequestDescriptor(
            method=descriptor.method,
            path=descriptor.path,
            body=descriptor.body,
            headers=headers,
            params=descriptor.params,
            timeout_seconds=descriptor.timeout_seconds,
            idempotency_key=descriptor.idempotency_key,
            retries=descriptor.retries,
        )

        try:
            response = await self._request_with_headers(conditional)
        except SpecStoryError as exc:
            if not is_not_modified(exc):
                raise
            if if_none_match is not None or self._cache is None:
                return None
            cached = self._cache.get_entry(key)
            if cached is None:
                return None
            return ConditionalRead(data=cached.data, etag=cached.etag, from_cache=True)

        etag = response.headers.get("etag")
        data = parse(response.data, etag)
        if self._cache is not None:
            self._cache.set(key, data, etag=etag, ttl_seconds=ttl_seconds)
        return ConditionalRead(data=data, etag=etag)
