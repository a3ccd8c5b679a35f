# ============================================================================
# AGENT ADMISSION LIMITS
# ============================================================================
# EPOCH: 1 - AGENT ORCHESTRATION
# STATUS: Core - Concurrency and rate limits for agent calls
# PURPOSE: Enforce max_concurrent and rate_limit_per_min per agent
# CREATED: 19 OCT 2026
# ============================================================================
"""
Agent Admission Limits

Every call into an agent passes through its AgentLimiter:

    async with limiter.admit():
        ...

which holds one slot of an asyncio.Semaphore(max_concurrent) and one
admission in a sliding 60-second window of rate_limit_per_min. A caller
that would exceed the window sleeps until the oldest admission ages out.

Clock and sleep are injectable so tests can drive the window without
waiting.
"""

import asyncio
import time
from collections import deque
from contextlib import asynccontextmanager
from typing import Awaitable, Callable, Deque, Dict, Optional

Clock = Callable[[], float]
Sleep = Callable[[float], Awaitable[None]]

RATE_WINDOW_SECONDS = 60.0


class RateLimiter:
    """Sliding-window admission counter."""

    def __init__(
        self,
        limit: int,
        window_seconds: float = RATE_WINDOW_SECONDS,
        clock: Optional[Clock] = None,
        sleep: Optional[Sleep] = None,
    ):
        if limit < 1:
            raise ValueError(f"Rate limit must be at least 1, got {limit}")
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock or time.monotonic
        self._sleep = sleep or asyncio.sleep
        self._admitted: Deque[float] = deque()
        self._lock = asyncio.Lock()
        self.waits = 0

    def _prune(self, now: float) -> None:
        while self._admitted and self._admitted[0] <= now - self.window_seconds:
            self._admitted.popleft()

    async def acquire(self) -> None:
        """Wait until an admission is available, then take it."""
        async with self._lock:
            while True:
                now = self._clock()
                self._prune(now)
                if len(self._admitted) < self.limit:
                    self._admitted.append(now)
                    return
                self.waits += 1
                await self._sleep(self._admitted[0] + self.window_seconds - now)

    @property
    def in_window(self) -> int:
        self._prune(self._clock())
        return len(self._admitted)


class AgentLimiter:
    """Concurrency semaphore plus rate window for one agent."""

    def __init__(
        self,
        max_concurrent: int,
        rate_limit_per_min: int,
        clock: Optional[Clock] = None,
        sleep: Optional[Sleep] = None,
    ):
        if max_concurrent < 1:
            raise ValueError(f"max_concurrent must be at least 1, got {max_concurrent}")
        self.max_concurrent = max_concurrent
        self._semaphore = asyncio.Semaphore(max_concurrent)
        self.rate = RateLimiter(rate_limit_per_min, clock=clock, sleep=sleep)
        self.in_flight = 0
        self.peak_in_flight = 0
        self.admitted = 0

    @asynccontextmanager
    async def admit(self):
        async with self._semaphore:
            await self.rate.acquire()
            self.in_flight += 1
            self.admitted += 1
            self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
            try:
                yield
            finally:
                self.in_flight -= 1

    @property
    def stats(self) -> Dict[str, int]:
        return {
            "in_flight": self.in_flight,
            "peak_in_flight": self.peak_in_flight,
            "admitted": self.admitted,
            "rate_waits": self.rate.waits,
        }
