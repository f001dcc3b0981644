# 📄 File: gardenbeds/shared/core/rate_limiter.py

# 🧭 Purpose (Layman Explanation):
# Makes sure we never call an outside plant service more often than it allows.
# If we are about to go over the limit, the request politely waits its turn in line.

# 🧪 Purpose (Technical Summary):
# In-process sliding-window rate limiter, one per remote hostname. Callers that find the
# window full are parked in a FIFO queue of futures; a single loop timer releases them
# when the oldest request timestamp leaves the window.

# 🔗 Dependencies:
# - asyncio: Futures and loop timers for waiting callers
# - pydantic: RateLimitConfig validation

# 🔄 Connected Modules / Calls From:
# Used by: APIClient (before every outbound attempt), BackendService (rate limit status)

import asyncio
import time
from collections import deque
from typing import Any, Callable, Deque, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from gardenbeds.shared.utils.logging import get_logger

logger = get_logger(__name__)


class RateLimitConfig(BaseModel):
    """Sliding window quota: at most ``max_requests`` per ``window_seconds``."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    max_requests: int = Field(default=100, gt=0)
    window_seconds: float = Field(default=60.0, gt=0)


class SlidingWindowRateLimiter:
    """
    Sliding window rate limiter.

    Invariant: the number of recorded timestamps newer than
    ``now - window_seconds`` never exceeds ``max_requests``.

    Waiting callers are served strictly in arrival order. Only one timer is
    scheduled at a time; it fires when the oldest timestamp exits the
    window and releases as many head waiters as there are free slots.

    ``clock`` must run on the same timeline as the event loop's ``loop.time()``
    (``time.monotonic`` for the default loop): release timers are scheduled with
    ``loop.call_later`` using delays read from ``clock``.
    """

    def __init__(self, config: Optional[RateLimitConfig] = None, clock: Callable[[], float] = time.monotonic):
        self.config = config or RateLimitConfig()
        self._clock = clock
        self._timestamps: Deque[float] = deque()
        self._waiters: Deque[asyncio.Future] = deque()
        self._timer: Optional[asyncio.TimerHandle] = None

    def _prune(self, now: float) -> None:
        boundary = now - self.config.window_seconds
        while self._timestamps and self._timestamps[0] <= boundary:
            self._timestamps.popleft()

    def _try_acquire(self) -> bool:
        now = self._clock()
        self._prune(now)
        if len(self._timestamps) < self.config.max_requests:
            self._timestamps.append(now)
            return True
        return False

    async def wait_for_slot(self) -> None:
        """
        Resolve once a slot is free in the trailing window, recording the
        request. Suspends while the window is full.
        """
        if not self._has_waiters() and self._try_acquire():
            return

        loop = asyncio.get_running_loop()
        waiter = loop.create_future()
        self._waiters.append(waiter)
        self._schedule(loop)

        logger.debug(
            "Rate limit reached, request queued",
            extra={'waiting': len(self._waiters), 'max_requests': self.config.max_requests}
        )
        await waiter

    def _has_waiters(self) -> bool:
        while self._waiters and self._waiters[0].done():
            self._waiters.popleft()
        return bool(self._waiters)

    def _schedule(self, loop: asyncio.AbstractEventLoop) -> None:
        if self._timer is not None or not self._waiters:
            return

        if self._timestamps:
            delay = self._timestamps[0] + self.config.window_seconds - self._clock()
        else:
            delay = 0.0
        self._timer = loop.call_later(max(delay, 0.0), self._release_waiters, loop)

    def _release_waiters(self, loop: asyncio.AbstractEventLoop) -> None:
        self._timer = None

        while self._waiters:
            waiter = self._waiters[0]
            if waiter.done():
                # Cancelled while queued
                self._waiters.popleft()
                continue
            if not self._try_acquire():
                break
            self._waiters.popleft()
            waiter.set_result(None)

        self._schedule(loop)

    def get_remaining_requests(self) -> int:
        """Slots currently available. Never blocks."""
        self._prune(self._clock())
        return max(self.config.max_requests - len(self._timestamps), 0)

    def get_status(self) -> Dict[str, Any]:
        now = self._clock()
        self._prune(now)
        reset_in = 0.0
        if self._timestamps:
            reset_in = max(self._timestamps[0] + self.config.window_seconds - now, 0.0)

        return {
            'remaining': max(self.config.max_requests - len(self._timestamps), 0),
            'reset_in_seconds': round(reset_in, 3),
            'waiting': sum(1 for waiter in self._waiters if not waiter.done()),
            'max_requests': self.config.max_requests,
            'window_seconds': self.config.window_seconds,
        }

    def reset(self) -> None:
        """Forget recorded requests and cancel anyone still waiting."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                waiter.cancel()
        self._timestamps.clear()


class RateLimiterRegistry:
    """
    One limiter per remote hostname, created on first use and kept for the
    lifetime of the registry's owner.
    """

    def __init__(self, config: Optional[RateLimitConfig] = None, clock: Callable[[], float] = time.monotonic):
        self.config = config or RateLimitConfig()
        self.clock = clock
        self._limiters: Dict[str, SlidingWindowRateLimiter] = {}

    def get(self, host: str) -> SlidingWindowRateLimiter:
        limiter = self._limiters.get(host)
        if limiter is None:
            limiter = SlidingWindowRateLimiter(self.config, clock=self.clock)
            self._limiters[host] = limiter
            logger.debug(f"Created rate limiter for {host}", extra={'host': host})
        return limiter

    def status(self, host: str) -> Dict[str, Any]:
        """Status for ``host``; an unused host reports a full quota."""
        limiter = self._limiters.get(host)
        if limiter is None:
            return {
                'remaining': self.config.max_requests,
                'reset_in_seconds': 0.0,
                'waiting': 0,
                'max_requests': self.config.max_requests,
                'window_seconds': self.config.window_seconds,
            }
        return limiter.get_status()

    def hosts(self) -> List[str]:
        return list(self._limiters)

    def clear(self) -> None:
        for limiter in self._limiters.values():
            limiter.reset()
        self._limiters.clear()
