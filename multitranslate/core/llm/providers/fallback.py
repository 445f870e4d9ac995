"""
Primary/secondary provider chain.

The primary provider gets its full retry budget; only when it is exhausted is
the secondary tried, once per chunk. If the secondary fails too, the
primary's error is the one surfaced.
"""

import functools
import logging
from typing import Callable, Optional

from ..base import TranslationProvider
from multitranslate.core.cancellation import CancellationToken
from multitranslate.core.events import EventBus, create_fallback_event
from multitranslate.core.exceptions import TranslationCancelledError
from multitranslate.core.rate_limiter import RateLimiter
from multitranslate.core.retry_manager import RetryManager
from multitranslate.languages import Language

logger = logging.getLogger(__name__)


class FallbackProvider(TranslationProvider):
    """Calls ``secondary`` when ``primary`` fails after its retries."""

    manages_retries = True

    def __init__(self, primary: TranslationProvider, secondary: TranslationProvider,
                 retry_manager: Optional[RetryManager] = None,
                 event_bus: Optional[EventBus] = None,
                 secondary_rate_limiter: Optional[RateLimiter] = None):
        super().__init__(timeout=primary.timeout)
        self.primary = primary
        self.secondary = secondary
        self.retry_manager = retry_manager or RetryManager()
        self.event_bus = event_bus
        # The primary is paced by the caller; the secondary needs its own spacing
        self.secondary_rate_limiter = secondary_rate_limiter

    @property
    def name(self) -> str:
        return f"{self.primary.name}+{self.secondary.name}"

    async def translate_chunk(self, chunk: str, language: Language,
                              cancel_token: Optional[CancellationToken] = None,
                              on_retry: Optional[Callable[[Exception, int], None]] = None) -> str:
        try:
            return await self.retry_manager.execute_with_retry(
                functools.partial(self.primary.translate_chunk, cancel_token=cancel_token),
                chunk,
                language,
                cancel_token=cancel_token,
                operation_id=f"{self.primary.name}:{language.key}",
                on_retry=on_retry,
            )
        except TranslationCancelledError:
            raise
        except Exception as primary_error:
            logger.warning(
                f"{self.primary.name} failed for {language.name}, "
                f"falling back to {self.secondary.name}: {primary_error}"
            )
            if self.event_bus is not None:
                self.event_bus.publish(create_fallback_event(
                    chunk, self.primary.name, self.secondary.name,
                    str(primary_error), language=language.key,
                ))
            try:
                if self.secondary_rate_limiter is not None:
                    await self.secondary_rate_limiter.wait(cancel_token)
                return await self.secondary.translate_chunk(chunk, language, cancel_token=cancel_token)
            except TranslationCancelledError:
                raise
            except Exception as secondary_error:
                logger.warning(
                    f"Fallback {self.secondary.name} also failed for {language.name}: {secondary_error}"
                )
                raise primary_error

    async def close(self):
        await self.primary.close()
        await self.secondary.close()

    def __repr__(self) -> str:
        return f"FallbackProvider(primary={self.primary!r}, secondary={self.secondary!r})"
