"""Tests for client construction, configuration and cache management."""

from __future__ import annotations

import asyncio
import re
from typing import Any

import httpx
import pytest

from packages.specstory_sdk import (
    CacheSettings,
    DebugSettings,
    SpecStoryClient,
    SpecStorySettings,
)


def _session_handler(request: httpx.Request) -> httpx.Response:
    project_id, session_id = request.url.path.split("/")[4::2]
    return httpx.Response(
        200,
        json={
            "success": True,
            "data": {
                "session": {"id": session_id, "projectId": project_id, "name": "s"}
            },
        },
        headers={"etag": f'"{session_id}"'},
    )


def test_missing_api_key_is_rejected() -> None:
    """A client without any resolvable API key should fail fast."""
    with pytest.raises(ValueError, match="SPECSTORY_API_KEY"):
        SpecStoryClient()


def test_api_key_falls_back_to_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """SPECSTORY_API_KEY should be used when no key is passed."""
    monkeypatch.setenv("SPECSTORY_API_KEY", "env-key")

    client = SpecStoryClient()

    assert client.settings.api_key == "env-key"
    asyncio.run(client.aclose())


def test_explicit_arguments_override_settings() -> None:
    """Constructor arguments should win over a provided settings object."""
    settings = SpecStorySettings(
        api_key="settings-key",
        base_url="https://settings.example.test",
        max_retries=5,
        cache=CacheSettings(max_size=10),
    )

    client = SpecStoryClient(
        "arg-key",
        settings=settings,
        base_url="https://arg.example.test/",
        cache=CacheSettings(max_size=3, default_ttl_seconds=5.0),
    )

    assert client.settings.api_key == "arg-key"
    assert client.settings.base_url == "https://arg.example.test"
    assert client.settings.max_retries == 5
    assert client.executor.base_url == "https://arg.example.test"
    assert client.cache is not None
    assert client.cache.max_size == 3
    asyncio.run(client.aclose())


def test_cache_can_be_disabled() -> None:
    """cache=False should build no cache and make management calls no-ops."""
    client = SpecStoryClient("k", cache=False)

    assert client.cache is None
    client.clear_cache()
    assert client.invalidate_cache(r".*") == 0
    asyncio.run(client.aclose())


def test_invalidate_and_clear_cache() -> None:
    """Pattern invalidation should drop only matching session keys."""

    async def scenario() -> tuple[int, list[str], int]:
        async with SpecStoryClient(
            "k", transport=httpx.MockTransport(_session_handler)
        ) as client:
            await client.sessions.read("p1", "a")
            await client.sessions.read("p1", "b")
            await client.sessions.read("p2", "a")
            removed = client.invalidate_cache(re.compile(r"^session:p1:"))
            assert client.cache is not None
            remaining = client.cache.keys()
            client.clear_cache()
            return removed, remaining, client.cache.size

    removed, remaining, size_after_clear = asyncio.run(scenario())

    assert removed == 2
    assert remaining == ["session:p2:a"]
    assert size_after_clear == 0


def test_clients_do_not_share_cache_or_dedup_state() -> None:
    """Each client owns its own cache and in-flight table."""
    first = SpecStoryClient("k1")
    second = SpecStoryClient("k2")

    assert first.cache is not second.cache
    assert first.executor.deduplicator is not second.executor.deduplicator
    asyncio.run(first.aclose())
    asyncio.run(second.aclose())


def test_debug_sink_receives_cache_events() -> None:
    """Debug mode should route cache activity to the configured sink."""
    events: list[tuple[str, Any]] = []

    async def scenario() -> None:
        async with SpecStoryClient(
            "k",
            transport=httpx.MockTransport(_session_handler),
            debug=DebugSettings(enabled=True, log_requests=False, log_responses=False),
            debug_sink=lambda message, data: events.append((message, data)),
        ) as client:
            await client.sessions.read("p1", "a")

    asyncio.run(scenario())

    actions = [data["cache_action"] for _, data in events if data["category"] == "CACHE"]
    assert actions == ["miss", "set"]
