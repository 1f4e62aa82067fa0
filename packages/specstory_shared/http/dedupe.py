"""In-flight request sharing for idempotent reads."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, TypeVar

T = TypeVar("T")


class RequestDeduplicator:
    """Share one pending operation among concurrent callers with the same key.

    The entry for a key lives exactly as long as its task is pending; it is
    dropped by the task's first done-callback, before any waiter resumes.
    """

    def __init__(self) -> None:
        self._pending: dict[str, asyncio.Task[Any]] = {}

    @property
    def in_flight(self) -> int:
        """Return the number of keys with an operation still pending."""
        return len(self._pending)

    def is_pending(self, key: str) -> bool:
        """Return True when an operation for ``key`` has not settled yet."""
        task = self._pending.get(key)
        return task is not None and not task.done()

    async def dedupe(self, key: str, factory: Callable[[], Awaitable[T]]) -> T:
        """Await the shared operation for ``key``, starting it when absent."""
        task = self._pending.get(key)
        if task is None or task.done():
            task = asyncio.ensure_future(factory())
            self._pending[key] = task
            task.add_done_callback(lambda done, k=key: self._forget(k, done))
        # Cancelling one waiter must not cancel the operation others share.
        return await asyncio.shield(task)

    def _forget(self, key: str, task: asyncio.Task[Any]) -> None:
        if self._pending.get(key) is task:
            del self._pending[key]
        if not task.cancelled():
            # Mark the exception retrieved; waiters re-raise it themselves.
            task.exception()
