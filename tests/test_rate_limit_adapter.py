"""Unit tests for in-memory rate limiter adapter."""

from unittest.mock import Mock

import pytest

from app.adapters.rate_limit.in_memory import InMemorySlidingWindowRateLimiter


def test_allows_up_to_limit_in_same_window() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemorySlidingWindowRateLimiter(limit=3, window_seconds=60, clock=clock)

    assert limiter.consume("k").allowed is True
    assert limiter.consume("k").allowed is True
    result = limiter.consume("k")
    assert result.allowed is True
    assert result.remaining == 0


def test_blocks_when_over_limit() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemorySlidingWindowRateLimiter(limit=2, window_seconds=60, clock=clock)

    assert limiter.consume("k").allowed is True
    assert limiter.consume("k").allowed is True

    clock.return_value = 1015.0
    blocked = limiter.consume("k")
    assert blocked.allowed is False
    assert blocked.remaining == 0
    assert blocked.reset_at == 1060
    assert blocked.retry_after_seconds == 45


def test_window_is_anchored_at_first_request() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemorySlidingWindowRateLimiter(limit=1, window_seconds=10, clock=clock)

    assert limiter.consume("k").allowed is True

    # Still inside the window opened at t=1000
    clock.return_value = 1009.0
    assert limiter.consume("k").allowed is False

    # reset_at is inclusive: the window is replaced only once it has passed
    clock.return_value = 1010.0
    assert limiter.consume("k").allowed is False

    clock.return_value = 1010.5
    fresh = limiter.consume("k")
    assert fresh.allowed is True
    assert fresh.reset_at == 1021


def test_blocked_requests_do_not_extend_window() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemorySlidingWindowRateLimiter(limit=1, window_seconds=10, clock=clock)

    limiter.consume("k")
    for t in (1002.0, 1005.0, 1008.0):
        clock.return_value = t
        assert limiter.consume("k").reset_at == 1010


def test_isolated_by_key() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemorySlidingWindowRateLimiter(limit=1, window_seconds=60, clock=clock)

    assert limiter.consume("k1").allowed is True
    assert limiter.consume("k1").allowed is False

    assert limiter.consume("k2").allowed is True


def test_sweep_removes_expired_entries() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemorySlidingWindowRateLimiter(
        limit=5, window_seconds=10, sweep_interval_seconds=60, clock=clock
    )

    limiter.consume("old")
    clock.return_value = 1005.0
    limiter.consume("newer")
    assert len(limiter) == 2

    clock.return_value = 1012.0
    assert limiter.sweep() == 1
    assert len(limiter) == 1


def test_automatic_sweep_runs_on_consume_after_interval() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemorySlidingWindowRateLimiter(
        limit=5, window_seconds=10, sweep_interval_seconds=30, clock=clock
    )

    limiter.consume("a")
    limiter.consume("b")

    clock.return_value = 1031.0
    limiter.consume("c")

    assert len(limiter) == 1


@pytest.mark.parametrize(
    "kwargs",
    [
        {"limit": 0, "window_seconds": 60},
        {"limit": 1, "window_seconds": 0},
        {"limit": 1, "window_seconds": 60, "sweep_interval_seconds": 0},
    ],
)
def test_invalid_constructor_args(kwargs: dict) -> None:
    with pytest.raises(ValueError):
        InMemorySlidingWindowRateLimiter(**kwargs)


def test_invalid_consume_args() -> None:
    limiter = InMemorySlidingWindowRateLimiter(limit=1, window_seconds=60)

    with pytest.raises(ValueError):
        limiter.consume("")

    with pytest.raises(ValueError):
        limiter.consume("k", cost=0)
