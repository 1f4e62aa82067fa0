"""Unit tests for in-flight request sharing."""

from __future__ import annotations

import asyncio

import pytest

from packages.specstory_shared.http import RequestDeduplicator


def test_concurrent_callers_share_one_operation() -> None:
    """Five concurrent callers for one key should start one operation."""
    calls = 0

    async def scenario() -> list[dict[str, int]]:
        nonlocal calls
        dedupe = RequestDeduplicator()

        async def fetch() -> dict[str, int]:
            nonlocal calls
            calls += 1
            await asyncio.sleep(0.01)
            return {"value": 7}

        return await asyncio.gather(*(dedupe.dedupe("GET:/x", fetch) for _ in range(5)))

    results = asyncio.run(scenario())

    assert calls == 1
    assert results == [{"value": 7}] * 5


def test_entry_is_removed_once_operation_settles() -> None:
    """A call after settlement should start a fresh operation."""
    calls = 0

    async def scenario() -> tuple[int, int, int]:
        nonlocal calls
        dedupe = RequestDeduplicator()

        async def fetch() -> int:
            nonlocal calls
            calls += 1
            return calls

        first = await dedupe.dedupe("k", fetch)
        in_flight = dedupe.in_flight
        second = await dedupe.dedupe("k", fetch)
        return first, second, in_flight

    first, second, in_flight = asyncio.run(scenario())

    assert (first, second) == (1, 2)
    assert in_flight == 0


def test_failure_is_shared_and_cleared() -> None:
    """Every waiter should see the same failure and the key should clear."""

    async def scenario() -> tuple[list[BaseException | str], bool]:
        dedupe = RequestDeduplicator()

        async def fetch() -> str:
            await asyncio.sleep(0.01)
            raise RuntimeError("boom")

        results = await asyncio.gather(
            *(dedupe.dedupe("k", fetch) for _ in range(3)), return_exceptions=True
        )
        return results, dedupe.is_pending("k")

    results, pending = asyncio.run(scenario())

    assert all(isinstance(item, RuntimeError) for item in results)
    assert len({id(item) for item in results}) == 1
    assert pending is False


def test_distinct_keys_do_not_share() -> None:
    """Different keys should run independent operations."""
    calls: list[str] = []

    async def scenario() -> None:
        dedupe = RequestDeduplicator()

        def factory(name: str):
            async def fetch() -> str:
                calls.append(name)
                await asyncio.sleep(0.01)
                return name

            return fetch

        await asyncio.gather(dedupe.dedupe("a", factory("a")), dedupe.dedupe("b", factory("b")))

    asyncio.run(scenario())

    assert sorted(calls) == ["a", "b"]


def test_cancelling_one_waiter_leaves_shared_operation_running() -> None:
    """A cancelled waiter must not cancel the operation others await."""

    async def scenario() -> str:
        dedupe = RequestDeduplicator()

        async def fetch() -> str:
            await asyncio.sleep(0.02)
            return "done"

        impatient = asyncio.ensure_future(dedupe.dedupe("k", fetch))
        patient = asyncio.ensure_future(dedupe.dedupe("k", fetch))
        await asyncio.sleep(0)
        impatient.cancel()
        with pytest.raises(asyncio.CancelledError):
            await impatient
        return await patient

    assert asyncio.run(scenario()) == "done"
