"""
Minimum-interval rate limiter for provider requests.

One instance is created per provider and shared by every language task that
talks to it. The check-and-stamp step runs under an asyncio.Lock, so two
concurrent callers can never both observe "enough time has passed" and fire
together.
"""

import asyncio
import time
from typing import Callable, Optional

from .cancellation import CancellationToken, cancellable_sleep


class RateLimiter:
    """Enforces at least ``interval`` seconds between consecutive calls."""

    def __init__(self, interval: float, clock: Callable[[], float] = time.monotonic):
        """
        Args:
            interval: Minimum spacing between calls, in seconds
            clock: Monotonic time source (injectable for tests)
        """
        if interval < 0:
            raise ValueError(f"interval must be >= 0, got {interval}")
        self.interval = interval
        self._clock = clock
        self._last_call: Optional[float] = None
        self._lock = asyncio.Lock()

    async def wait(self, cancel_token: Optional[CancellationToken] = None) -> None:
        """Suspend until the interval since the previous call has elapsed."""
        async with self._lock:
            if cancel_token is not None:
                cancel_token.raise_if_cancelled()
            if self._last_call is not None:
                elapsed = self._clock() - self._last_call
                if elapsed < self.interval:
                    await cancellable_sleep(self.interval - elapsed, cancel_token)
            self._last_call = self._clock()

    def reset(self) -> None:
        self._last_call = None

    @property
    def last_call(self) -> Optional[float]:
        return self._last_call
