"""Async SpecStory API client for application and CLI callers."""

from __future__ import annotations

from typing import Any

import httpx

from packages.specstory_sdk.resources import GraphQL, Projects, Sessions
from packages.specstory_shared.cache import KeyMatcher, ResponseCache
from packages.specstory_shared.config import CacheSettings, DebugSettings, SpecStorySettings
from packages.specstory_shared.http import BackoffPolicy, RequestExecutor
from packages.specstory_shared.logging import DebugLogger, DebugSink

MISSING_API_KEY_MESSAGE = (
    "API key is required. Pass api_key or set the SPECSTORY_API_KEY environment variable."
)


class SpecStoryClient:
    """Entry point owning one executor, one cache and the resource facades.

    Every client has its own cache and in-flight request table, so several
    independently configured clients can live in one process.
    """

    def __init__(
        self,
        api_key: str | None = None,
        *,
        base_url: str | None = None,
        timeout_seconds: float | None = None,
        max_retries: int | None = None,
        cache: CacheSettings | bool | None = None,
        debug: DebugSettings | bool | None = None,
        debug_sink: DebugSink | None = None,
        settings: SpecStorySettings | None = None,
        backoff: BackoffPolicy | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Resolve settings and build the executor, cache and facades.

        Explicit arguments win over ``settings``; ``settings`` defaults to
        values loaded from the environment and the YAML config file.
        """
        self._settings = _resolve_settings(
            settings,
            api_key=api_key,
            base_url=base_url,
            timeout_seconds=timeout_seconds,
            max_retries=max_retries,
            cache=cache,
            debug=debug,
        )
        if not self._settings.api_key.strip():
            raise ValueError(MISSING_API_KEY_MESSAGE)

        self._debug = DebugLogger(self._settings.debug, sink=debug_sink)
        cache_settings = self._settings.cache
        self._cache: ResponseCache[Any] | None = (
            ResponseCache(
                max_size=cache_settings.max_size,
                default_ttl_seconds=cache_settings.default_ttl_seconds,
                on_event=self._debug.log_cache,
            )
            if cache_settings.enabled
            else None
        )
        self._executor = RequestExecutor(
            self._settings.api_key,
            base_url=self._settings.base_url,
            timeout_seconds=self._settings.timeout_seconds,
            max_retries=self._settings.max_retries,
            backoff=backoff,
            debug=self._debug,
            transport=transport,
            client=http_client,
        )
        self.projects = Projects(self._executor, self._cache)
        self.sessions = Sessions(self._executor, self._cache)
        self.graphql = GraphQL(self._executor, self._cache)

    @property
    def settings(self) -> SpecStorySettings:
        """Return the resolved settings."""
        return self._settings

    @property
    def cache(self) -> ResponseCache[Any] | None:
        """Return the response cache, or ``None`` when caching is disabled."""
        return self._cache

    @property
    def executor(self) -> RequestExecutor:
        return self._executor

    def clear_cache(self) -> None:
        """Drop every cached response."""
        if self._cache is not None:
            self._cache.clear()

    def invalidate_cache(self, matcher: KeyMatcher) -> int:
        """Drop cached responses whose key matches; return how many went."""
        if self._cache is None:
            return 0
        return self._cache.invalidate_pattern(matcher)

    async def aclose(self) -> None:
        """Close transport resources owned by this client."""
        await self._executor.aclose()

    async def __aenter__(self) -> SpecStoryClient:
        """Enter async context manager scope."""
        return self

    async def __aexit__(self, *_: object) -> None:
        """Exit async context manager scope and close transport resources."""
        await self.aclose()


def _resolve_settings(
    settings: SpecStorySettings | None,
    *,
    api_key: str | None,
    base_url: str | None,
    timeout_seconds: float | None,
    max_retries: int | None,
    cache: CacheSettings | bool | None,
    debug: DebugSettings | bool | None,
) -> SpecStorySettings:
    overrides: dict[str, Any] = {}
    if api_key:
        overrides["api_key"] = api_key
    if base_url is not None:
        overrides["base_url"] = base_url
    if timeout_seconds is not None:
        overrides["timeout_seconds"] = timeout_seconds
    if max_retries is not None:
        overrides["max_retries"] = max_retries

    if isinstance(cache, bool):
        overrides["cache"] = {"enabled": cache}
    elif cache is not None:
        overrides["cache"] = cache.model_dump()
    if isinstance(debug, bool):
        overrides["debug"] = {"enabled": debug}
    elif debug is not None:
        overrides["debug"] = debug.model_dump()

    if settings is None:
        return SpecStorySettings(**overrides)
    if not overrides:
        return settings
    merged = settings.model_dump()
    for key, value in overrides.items():
        if isinstance(value, dict):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    return SpecStorySettings(**merged)
