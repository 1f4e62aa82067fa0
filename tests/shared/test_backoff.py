"""Unit tests for retry backoff delays."""

from __future__ import annotations

import pytest

from packages.specstory_shared.http import BackoffPolicy


def test_delay_doubles_per_attempt_without_jitter() -> None:
    """Delay should follow base * 2**attempt when jitter draws zero."""
    policy = BackoffPolicy(rng=lambda: 0.0)

    assert policy.delay(0) == pytest.approx(0.2)
    assert policy.delay(1) == pytest.approx(0.4)
    assert policy.delay(3) == pytest.approx(1.6)


def test_delay_adds_scaled_jitter() -> None:
    """Jitter should add rng() * jitter_seconds on top of the base delay."""
    policy = BackoffPolicy(rng=lambda: 0.5)

    assert policy.delay(0) == pytest.approx(0.25)


def test_delay_stays_inside_jitter_window() -> None:
    """Real random jitter should land in [base, base + 100ms)."""
    policy = BackoffPolicy()

    for _ in range(50):
        value = policy.delay(0)
        assert 0.2 <= value < 0.3


def test_delay_is_capped_by_default() -> None:
    """Large attempt indexes should clamp to the 30 second ceiling."""
    policy = BackoffPolicy(rng=lambda: 0.0)

    assert policy.delay(20) == 30.0


def test_delay_cap_can_be_disabled() -> None:
    """A None ceiling should leave exponential growth unbounded."""
    policy = BackoffPolicy(max_delay_seconds=None, rng=lambda: 0.0)

    assert policy.delay(10) == pytest.approx(0.2 * 1024)


def test_delay_rejects_negative_attempt() -> None:
    """Attempt indexes are zero-based and never negative."""
    with pytest.raises(ValueError):
        BackoffPolicy().delay(-1)


def test_policy_rejects_negative_configuration() -> None:
    """Negative delays make no sense and should fail fast."""
    with pytest.raises(ValueError):
        BackoffPolicy(base_delay_seconds=-0.1)
