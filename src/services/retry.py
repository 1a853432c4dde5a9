"""
Retry with exponential backoff.

Delays double from base_delay: 1s, 2s, 4s, ... A call makes at most
max_retries + 1 attempts. Only errors whose `retryable` attribute is true
are retried; anything else propagates on the first failure.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Coroutine

from .exceptions import GalaChainError

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


def is_retryable(error: BaseException) -> bool:
    return isinstance(error, GalaChainError) and bool(error.retryable)


class RetryPolicy:
    """
    Bounded retry loop for async operations.

    Args:
        max_retries: Retries after the first attempt
        base_delay: Delay before the first retry, in seconds
        sleep: Awaitable sleep between attempts (injectable for tests)
    """

    def __init__(self, max_retries: int, base_delay: float = 1.0, sleep: Sleep = asyncio.sleep) -> None:
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        self.max_retries = max_retries
        self.base_delay = base_delay
        self._sleep = sleep

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def delay_for(self, attempt: int) -> float:
        """Delay after the given (0-based) failed attempt."""
        return self.base_delay * (2 ** attempt)

    async def run(self, func: Callable[[], Awaitable[Any]], label: str = "request") -> Any:
        """
        Await func(), retrying retryable failures.

        The backoff wait yields to the event loop instead of blocking it.
        Raises the last error once retries are exhausted.
        """
        attempt = 0
        while True:
            try:
                result = await func()
            except GalaChainError as e:
                if not is_retryable(e) or attempt >= self.max_retries:
                    if attempt > 0:
                        logger.error(f"{label}: giving up after {attempt + 1} attempt(s): {e}")
                    raise
                delay = self.delay_for(attempt)
                logger.warning(
                    f"{label}: attempt {attempt + 1}/{self.max_attempts} failed ({e}), "
                    f"retrying in {delay:g}s"
                )
                await self._sleep(delay)
                attempt += 1
                continue

            if attempt > 0:
                logger.info(f"{label}: succeeded on attempt {attempt + 1}")
            return result


def run_blocking(coro: Coroutine[Any, Any, Any]) -> Any:
    """
    Run a coroutine to completion on a fresh, short-lived event loop.

    For call sites outside any event loop (worker threads, scripts).
    Must not be called from a thread that is already running a loop.
    """
    return asyncio.run(coro)
