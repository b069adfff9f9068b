"""In-memory sliding-window rate limiter.

Each key gets its own window that opens with the key's first request and
lasts ``window_seconds``. Expired entries are swept periodically so idle
clients do not accumulate.

Notes:
- Per-process only: state is lost on restart and running multiple workers
  multiplies the effective limit. Swap for a shared store to scale out.
- Thread-safe: uses a lock around shared state.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult

logger = logging.getLogger(__name__)


@dataclass
class _WindowState:
    count: int
    reset_at: float


class InMemorySlidingWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter with a per-key window anchored at the key's first request.

    A window that has passed its ``reset_at`` is replaced by a fresh one on
    the next request. Blocked requests do not extend or consume the window.
    """

    def __init__(
        self,
        *,
        limit: int,
        window_seconds: float,
        sweep_interval_seconds: float = 300,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the limiter.

        Args:
            limit: Maximum number of allowed units per window.
            window_seconds: Window length in seconds.
            sweep_interval_seconds: Minimum delay between automatic sweeps.
            clock: Time source function returning UNIX time in seconds.

        Raises:
            ValueError: If limit, window_seconds or sweep interval are invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")
        if sweep_interval_seconds <= 0:
            raise ValueError("sweep_interval_seconds must be > 0")

        self._limit = limit
        self._window_seconds = window_seconds
        self._sweep_interval = sweep_interval_seconds
        self._clock = clock
        self._lock = threading.RLock()
        self._state_by_key: dict[str, _WindowState] = {}
        self._last_sweep = clock()

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_seconds(self) -> float:
        return self._window_seconds

    def __len__(self) -> int:
        with self._lock:
            return len(self._state_by_key)

    def consume(self, key: str, *, cost: int = 1) -> RateLimitResult:
        """Consume budget for ``key`` and report whether the request may pass.

        Raises:
            ValueError: If key is empty or cost is invalid.
        """
        if cost < 1:
            raise ValueError("cost must be >= 1")
        if not key:
            raise ValueError("key must be a non-empty string")

        now = self._clock()

        with self._lock:
            if now - self._last_sweep >= self._sweep_interval:
                self._sweep_locked(now)

            state = self._state_by_key.get(key)
            if state is None or state.reset_at < now:
                if cost > self._limit:
                    return self._blocked(now, now + self._window_seconds)
                state = _WindowState(count=cost, reset_at=now + self._window_seconds)
                self._state_by_key[key] = state
                return self._allowed(state)

            if state.count + cost > self._limit:
                return self._blocked(now, state.reset_at)

            state.count += cost
            return self._allowed(state)

    def sweep(self) -> int:
        with self._lock:
            return self._sweep_locked(self._clock())

    def _sweep_locked(self, now: float) -> int:
        expired = [k for k, state in self._state_by_key.items() if state.reset_at < now]
        for key in expired:
            del self._state_by_key[key]
        self._last_sweep = now
        if expired:
            logger.debug(
                "rate_limit.swept",
                extra={"removed": len(expired), "remaining_keys": len(self._state_by_key)},
            )
        return len(expired)

    def _allowed(self, state: _WindowState) -> RateLimitResult:
        return RateLimitResult(
            allowed=True,
            limit=self._limit,
            remaining=max(0, self._limit - state.count),
            reset_at=int(math.ceil(state.reset_at)),
            retry_after_seconds=None,
        )

    def _blocked(self, now: float, reset_at: float) -> RateLimitResult:
        return RateLimitResult(
            allowed=False,
            limit=self._limit,
            remaining=0,
            reset_at=int(math.ceil(reset_at)),
            retry_after_seconds=max(0, int(math.ceil(reset_at - now))),
        )
