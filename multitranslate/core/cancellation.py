"""
Cooperative cancellation for in-flight translations.

A token is threaded through every suspension point (rate limiter wait, chunk
request, retry backoff). Cancelling wakes sleepers immediately and makes the
next checkpoint raise TranslationCancelledError.
"""

import asyncio
from typing import Optional

from .exceptions import TranslationCancelledError


class CancellationToken:
    """Cancellation flag shared by one translate_text call and its tasks."""

    def __init__(self):
        self._event = asyncio.Event()
        self._reason: Optional[str] = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def cancel(self, reason: str = "Translation cancelled") -> None:
        if not self._event.is_set():
            self._reason = reason
            self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise TranslationCancelledError(self._reason or "Translation cancelled")

    async def sleep(self, delay: float) -> None:
        """Sleep for ``delay`` seconds, waking early and raising on cancel."""
        self.raise_if_cancelled()
        if delay <= 0:
            return
        try:
            await asyncio.wait_for(self._event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return
        self.raise_if_cancelled()


async def cancellable_sleep(delay: float, token: Optional[CancellationToken] = None) -> None:
    """asyncio.sleep that honours an optional cancellation token."""
    if token is None:
        if delay > 0:
            await asyncio.sleep(delay)
        return
    await token.sleep(delay)
