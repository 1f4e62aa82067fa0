"""Exponential backoff with additive jitter for retry scheduling."""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Callable

DEFAULT_BASE_DELAY_SECONDS = 0.2
DEFAULT_JITTER_SECONDS = 0.1
DEFAULT_MAX_DELAY_SECONDS = 30.0


@dataclass(frozen=True)
class BackoffPolicy:
    """Compute retry delays as ``base * 2**attempt + jitter``.

    ``max_delay_seconds`` caps the result; ``None`` disables the cap.
    """

    base_delay_seconds: float = DEFAULT_BASE_DELAY_SECONDS
    jitter_seconds: float = DEFAULT_JITTER_SECONDS
    max_delay_seconds: float | None = DEFAULT_MAX_DELAY_SECONDS
    rng: Callable[[], float] = field(default=random.random, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.base_delay_seconds < 0 or self.jitter_seconds < 0:
            raise ValueError("backoff delays must be non-negative")
        if self.max_delay_seconds is not None and self.max_delay_seconds < 0:
            raise ValueError("max_delay_seconds must be non-negative")

    def delay(self, attempt: int) -> float:
        """Return seconds to wait before retrying after ``attempt`` (0-based)."""
        if attempt < 0:
            raise ValueError("attempt must be zero or greater")
        jitter = self.rng() * self.jitter_seconds
        value = self.base_delay_seconds * (2**attempt) + jitter
        if self.max_delay_seconds is not None:
            return min(value, self.max_delay_seconds)
        return value
