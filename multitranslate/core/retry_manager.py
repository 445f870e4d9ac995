"""
Retry manager with exponential or linear backoff.

This module provides the retry logic used around every provider call:
- Exponential (base * 2^(n-1)) or linear (base * n) backoff with jitter
- Immediate re-raise of non-recoverable errors (bad credentials, cancellation)
- The last error is re-raised unchanged once attempts are exhausted
- A server Retry-After hint lengthens (never shortens) the backoff
- One warning log line per failed attempt
"""

import asyncio
import logging
import random
from typing import Optional, Callable, Any, Awaitable
from dataclasses import dataclass
from enum import Enum

from .cancellation import CancellationToken
from .exceptions import TranslationError

logger = logging.getLogger(__name__)


class RetryStrategy(Enum):
    """Backoff strategies."""
    EXPONENTIAL = "exponential"  # base * 2^(n-1)
    LINEAR = "linear"  # base * n

    @classmethod
    def from_name(cls, name: str) -> "RetryStrategy":
        try:
            return cls(name.lower())
        except ValueError:
            raise ValueError(f"Unknown retry strategy: {name}") from None


@dataclass
class RetryConfig:
    """Configuration for retry behavior.

    Attributes:
        max_retries: Retries after the first attempt (total attempts = max_retries + 1)
        base_delay: Delay before the first retry, in seconds
        max_delay: Cap on any single backoff delay, in seconds
        jitter: Random extra delay as a fraction of the computed delay (0.0-1.0)
        strategy: Backoff strategy
    """
    max_retries: int = 2
    base_delay: float = 0.5
    max_delay: float = 30.0
    jitter: float = 0.1
    strategy: RetryStrategy = RetryStrategy.EXPONENTIAL

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1


class RetryManager:
    """Runs an async operation with bounded retries and backoff."""

    def __init__(
        self,
        config: Optional[RetryConfig] = None,
        log_callback: Optional[Callable[[str, str], None]] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        """
        Args:
            config: Retry configuration
            log_callback: Callback for logging (log_type, message)
            sleep: Coroutine used for backoff delays (defaults to asyncio.sleep,
                or the cancellation token's sleep when one is given)
        """
        self.config = config or RetryConfig()
        self.log_callback = log_callback
        self._sleep = sleep

    def calculate_delay(self, attempt: int) -> float:
        """Delay before retry number ``attempt`` (1-based)."""
        config = self.config
        if attempt < 1:
            return 0.0

        if config.strategy == RetryStrategy.LINEAR:
            delay = config.base_delay * attempt
        else:  # EXPONENTIAL
            delay = config.base_delay * (2 ** (attempt - 1))

        delay = min(delay, config.max_delay)

        if config.jitter > 0 and delay > 0:
            delay += delay * config.jitter * random.random()

        return delay

    def _log(self, log_type: str, message: str):
        """Internal logging helper."""
        getattr(logger, log_type, logger.info)(message)
        if self.log_callback:
            self.log_callback(log_type, message)

    async def _wait(self, delay: float, cancel_token: Optional[CancellationToken]) -> None:
        if self._sleep is not None:
            if cancel_token is not None:
                cancel_token.raise_if_cancelled()
            await self._sleep(delay)
            if cancel_token is not None:
                cancel_token.raise_if_cancelled()
        elif cancel_token is not None:
            await cancel_token.sleep(delay)
        else:
            await asyncio.sleep(delay)

    async def execute_with_retry(
        self,
        func: Callable[..., Awaitable[Any]],
        *args,
        operation_id: Optional[str] = None,
        on_retry: Optional[Callable[[Exception, int], None]] = None,
        cancel_token: Optional[CancellationToken] = None,
        **kwargs
    ) -> Any:
        """Execute a function with retry logic.

        Args:
            func: Async function to execute
            *args: Positional arguments for func
            operation_id: Identifier used in log messages
            on_retry: Callback called before each retry (error, attempt_number)
            cancel_token: Checked before every attempt and during backoff
            **kwargs: Keyword arguments for func

        Returns:
            Result of func

        Raises:
            Exception: The last error raised by func, unchanged, once all
                attempts are used or as soon as a non-recoverable error occurs
        """
        op_id = operation_id or getattr(func, "__name__", "operation")
        max_attempts = self.config.max_attempts
        attempt = 0

        while True:
            attempt += 1
            if cancel_token is not None:
                cancel_token.raise_if_cancelled()

            try:
                result = await func(*args, **kwargs)
            except Exception as error:
                if isinstance(error, TranslationError) and not error.recoverable:
                    self._log("error", f"Non-recoverable error in {op_id}: {error}")
                    raise

                if attempt >= max_attempts:
                    self._log(
                        "error",
                        f"Retry exhausted for {op_id} after {attempt} attempts: {error}"
                    )
                    raise

                delay = self.calculate_delay(attempt)
                retry_after = getattr(error, "retry_after", None)
                if retry_after:
                    # Server-requested wait, still bounded by max_delay
                    delay = max(delay, min(retry_after, self.config.max_delay))
                self._log(
                    "warning",
                    f"Attempt {attempt}/{max_attempts} failed for {op_id}: "
                    f"{type(error).__name__}: {error}. Retrying in {delay:.2f}s..."
                )

                if on_retry:
                    try:
                        on_retry(error, attempt)
                    except Exception as callback_error:
                        self._log("warning", f"Error in on_retry callback: {callback_error}")

                if delay > 0:
                    await self._wait(delay, cancel_token)
                continue

            if attempt > 1:
                self._log("info", f"Operation {op_id} succeeded after {attempt} attempts")
            return result


async def with_retry(
    operation: Callable[[], Awaitable[Any]],
    max_retries: int = 2,
    base_delay: float = 0.5,
    strategy: RetryStrategy = RetryStrategy.EXPONENTIAL,
    jitter: float = 0.1,
) -> Any:
    """Run ``operation`` with up to ``max_retries`` retries.

    Example:
        text = await with_retry(lambda: provider.translate_chunk(chunk, lang), 2, 0.5)
    """
    manager = RetryManager(RetryConfig(
        max_retries=max_retries,
        base_delay=base_delay,
        jitter=jitter,
        strategy=strategy,
    ))
    return await manager.execute_with_retry(operation)


def retrying(
    max_retries: int = 2,
    base_delay: float = 0.5,
    strategy: RetryStrategy = RetryStrategy.EXPONENTIAL
):
    """Decorator to add retry logic to async functions.

    Example:
        @retrying(max_retries=3, base_delay=1.0)
        async def translate_chunk(text: str) -> str:
            ...
    """
    def decorator(func: Callable) -> Callable:
        async def wrapper(*args, **kwargs):
            manager = RetryManager(RetryConfig(
                max_retries=max_retries,
                base_delay=base_delay,
                strategy=strategy
            ))
            return await manager.execute_with_retry(func, *args, **kwargs)
        wrapper.__name__ = getattr(func, "__name__", "wrapper")
        wrapper.__doc__ = func.__doc__
        return wrapper
    return decorator
