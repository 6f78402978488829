"""
Bounded in-memory sliding-window rate limiter.

Each client key keeps the timestamps of its recent requests. The number of
tracked keys is capped; when the cap is reached the least recently seen key is
evicted, so memory stays bounded no matter how many distinct clients appear.

For deployments with several instances, move the window state to a shared store.
"""

from __future__ import annotations

import threading
import time
from collections import OrderedDict, deque
from dataclasses import dataclass
from typing import Callable


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of a single rate-limit check."""

    allowed: bool
    limit: int
    remaining: int
    retry_after: int


class SlidingWindowRateLimiter:
    """
    Sliding-window request counter keyed by client.

    Attributes:
        limit: Maximum requests allowed per window
        window_seconds: Window length in seconds
        max_clients: Maximum number of client keys tracked at once

    Example:
        >>> limiter = SlidingWindowRateLimiter(limit=2, window_seconds=60)
        >>> limiter.hit("10.0.0.1").allowed
        True
        >>> limiter.hit("10.0.0.1").allowed
        True
        >>> limiter.hit("10.0.0.1").allowed
        False
    """

    def __init__(
        self,
        limit: int,
        window_seconds: int,
        max_clients: int = 10000,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.limit = limit
        self.window_seconds = window_seconds
        self.max_clients = max_clients
        self._clock = clock
        self._hits: OrderedDict[str, deque[float]] = OrderedDict()
        self._lock = threading.Lock()

    def hit(self, key: str) -> RateLimitDecision:
        """
        Record a request for ``key`` if it fits in the current window.

        Args:
            key: Client identifier (IP address or user id)

        Returns:
            RateLimitDecision describing whether the request may proceed
        """
        now = self._clock()
        cutoff = now - self.window_seconds

        with self._lock:
            hits = self._hits.get(key)
            if hits is None:
                hits = deque()
                self._hits[key] = hits
                self._evict_overflow()
            else:
                self._hits.move_to_end(key)

            while hits and hits[0] <= cutoff:
                hits.popleft()

            if len(hits) >= self.limit:
                retry_after = max(1, int(hits[0] + self.window_seconds - now) + 1)
                return RateLimitDecision(False, self.limit, 0, retry_after)

            hits.append(now)
            return RateLimitDecision(True, self.limit, self.limit - len(hits), 0)

    def _evict_overflow(self) -> None:
        while len(self._hits) > self.max_clients:
            self._hits.popitem(last=False)

    def reset(self) -> None:
        """Forget all tracked clients."""
        with self._lock:
            self._hits.clear()

    def size(self) -> int:
        """Number of client keys currently tracked."""
        with self._lock:
            return len(self._hits)
