"""Bounded, time-aware LRU cache for conditional reads.

Entries are keyed by a caller-defined logical identity (for example
``session:<project>:<session>``) and hold the last payload together with the
validator (ETag) the server sent for it. Expiry is lazy: an entry past its TTL
is dropped the next time it is looked up.
"""

from __future__ import annotations

import re
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Generic, Literal, TypeVar

from .config.models import DEFAULT_CACHE_MAX_SIZE, DEFAULT_CACHE_TTL_SECONDS

T = TypeVar("T")

CacheEventAction = Literal["hit", "miss", "set", "evict", "expire"]
CacheEventHook = Callable[[CacheEventAction, str], None]
KeyMatcher = re.Pattern[str] | str | Callable[[str], bool]


@dataclass(frozen=True, slots=True)
class CacheEntry(Generic[T]):
    """One cached payload and its validator."""

    data: T
    etag: str | None
    timestamp: float
    ttl: float

    def expired(self, now: float) -> bool:
        """Return True once ``now`` is past ``timestamp + ttl``."""
        return now > self.timestamp + self.ttl


class ResponseCache(Generic[T]):
    """Strict LRU over access order, updated on both reads and writes."""

    def __init__(
        self,
        *,
        max_size: int = DEFAULT_CACHE_MAX_SIZE,
        default_ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        on_event: CacheEventHook | None = None,
    ) -> None:
        if max_size <= 0:
            raise ValueError("max_size must be positive")
        if default_ttl_seconds <= 0:
            raise ValueError("default_ttl_seconds must be positive")
        self._max_size = max_size
        self._default_ttl = default_ttl_seconds
        self._clock = clock
        self._on_event = on_event
        self._entries: OrderedDict[str, CacheEntry[T]] = OrderedDict()
        self._lock = threading.RLock()

    @property
    def max_size(self) -> int:
        return self._max_size

    @property
    def default_ttl_seconds(self) -> float:
        return self._default_ttl

    @property
    def size(self) -> int:
        """Return the number of physically stored entries, expired or not."""
        with self._lock:
            return len(self._entries)

    def __len__(self) -> int:
        return self.size

    def get(self, key: str) -> T | None:
        """Return the payload for ``key`` or ``None`` when absent or expired."""
        entry = self.get_entry(key)
        return None if entry is None else entry.data

    def get_entry(self, key: str) -> CacheEntry[T] | None:
        """Return the full entry for ``key``, refreshing its recency."""
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                self._emit("miss", key)
                return None
            self._entries.move_to_end(key)
        self._emit("hit", key)
        return entry

    def set(
        self,
        key: str,
        data: T,
        *,
        etag: str | None = None,
        ttl_seconds: float | None = None,
    ) -> None:
        """Store ``data`` under ``key``, evicting the least recently used overflow."""
        ttl = self._default_ttl if ttl_seconds is None else ttl_seconds
        if ttl <= 0:
            raise ValueError("ttl_seconds must be positive")
        evicted: list[str] = []
        with self._lock:
            self._entries.pop(key, None)
            self._entries[key] = CacheEntry(
                data=data, etag=etag, timestamp=self._clock(), ttl=ttl
            )
            while len(self._entries) > self._max_size:
                oldest, _ = self._entries.popitem(last=False)
                evicted.append(oldest)
        self._emit("set", key)
        for oldest in evicted:
            self._emit("evict", oldest)

    def has(self, key: str) -> bool:
        """Return True when ``key`` holds a live entry; does not touch recency."""
        with self._lock:
            return self._live_entry(key) is not None

    def delete(self, key: str) -> bool:
        """Remove ``key``; return True when an entry was present."""
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        """Drop every entry."""
        with self._lock:
            self._entries.clear()

    def invalidate_pattern(self, matcher: KeyMatcher) -> int:
        """Remove every key accepted by ``matcher`` and return how many went."""
        accept = _compile_matcher(matcher)
        with self._lock:
            doomed = [key for key in self._entries if accept(key)]
            for key in doomed:
                del self._entries[key]
        return len(doomed)

    def keys(self) -> list[str]:
        """Return stored keys from least to most recently used."""
        with self._lock:
            return list(self._entries)

    def _live_entry(self, key: str) -> CacheEntry[T] | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expired(self._clock()):
            del self._entries[key]
            self._emit("expire", key)
            return None
        return entry

    def _emit(self, action: CacheEventAction, key: str) -> None:
        if self._on_event is not None:
            self._on_event(action, key)


def _compile_matcher(matcher: KeyMatcher) -> Callable[[str], bool]:
    if isinstance(matcher, str):
        pattern = re.compile(matcher)
        return lambda key: pattern.search(key) is not None
    if isinstance(matcher, re.Pattern):
        return lambda key: matcher.search(key) is not None
    if callable(matcher):
        return matcher
    raise TypeError("matcher must be a regex pattern, a pattern string or a predicate")
