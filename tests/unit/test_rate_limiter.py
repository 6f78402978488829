"""
Unit tests for the sliding-window rate limiter.
"""

from __future__ import annotations

import pytest

from charity_hub.rate_limiter import SlidingWindowRateLimiter


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.mark.unit
def test_allows_up_to_limit_then_blocks(clock: FakeClock) -> None:
    """Test that the request after the limit is refused with a retry hint."""
    limiter = SlidingWindowRateLimiter(limit=3, window_seconds=60, clock=clock)

    decisions = [limiter.hit("a") for _ in range(4)]

    assert [d.allowed for d in decisions] == [True, True, True, False]
    assert decisions[2].remaining == 0
    assert decisions[3].retry_after == 61


@pytest.mark.unit
def test_window_slides(clock: FakeClock) -> None:
    """Test that old hits fall out of the window and free up budget."""
    limiter = SlidingWindowRateLimiter(limit=2, window_seconds=60, clock=clock)
    limiter.hit("a")
    clock.now += 30
    limiter.hit("a")

    assert limiter.hit("a").allowed is False

    clock.now += 31
    assert limiter.hit("a").allowed is True


@pytest.mark.unit
def test_clients_are_counted_separately(clock: FakeClock) -> None:
    """Test that one client's usage does not throttle another."""
    limiter = SlidingWindowRateLimiter(limit=1, window_seconds=60, clock=clock)

    assert limiter.hit("a").allowed is True
    assert limiter.hit("b").allowed is True
    assert limiter.hit("a").allowed is False


@pytest.mark.unit
def test_tracked_clients_are_bounded(clock: FakeClock) -> None:
    """Test that the least recently seen client is evicted at the cap."""
    limiter = SlidingWindowRateLimiter(limit=1, window_seconds=60, max_clients=2, clock=clock)
    limiter.hit("a")
    limiter.hit("b")
    limiter.hit("c")

    assert limiter.size() == 2
    # "a" was evicted, so it starts with a fresh budget
    assert limiter.hit("a").allowed is True


@pytest.mark.unit
def test_reset_clears_state(clock: FakeClock) -> None:
    """Test that reset forgets all clients."""
    limiter = SlidingWindowRateLimiter(limit=1, window_seconds=60, clock=clock)
    limiter.hit("a")
    limiter.reset()

    assert limiter.size() == 0
    assert limiter.hit("a").allowed is True
