"""Exponential backoff for calls to the database and Redis.

Only transport-level failures are retried, and only inside the collaborator
that owns the connection. Flag evaluation itself never retries.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import random
import time
from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryError(Exception):
    """Every attempt failed; ``last_exception`` is the final failure."""

    def __init__(self, last_exception: Exception, attempts: int) -> None:
        self.last_exception = last_exception
        self.attempts = attempts
        super().__init__(f"Failed after {attempts} attempts. Last error: {last_exception}")


class RetryStrategy:
    """Backoff policy: which errors to retry, how long to wait, when to stop.

    Args:
        max_attempts: Total calls including the first one (at least 1).
        initial_delay: Wait before the first retry, in seconds.
        max_delay: Cap for a single wait.
        exponential_base: Growth factor between waits.
        jitter: Scale each wait by a random factor in [0.5, 1.5).
        exceptions: Exception types worth retrying.
        stop_after_delay: Give up once elapsed time plus the next wait
            would exceed this many seconds.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        initial_delay: float = 1.0,
        max_delay: float = 60.0,
        exponential_base: float = 2.0,
        jitter: bool = True,
        exceptions: tuple[type[Exception], ...] = (Exception,),
        stop_after_delay: float | None = None,
    ) -> None:
        self.max_attempts = max(1, max_attempts)
        self.initial_delay = initial_delay
        self.max_delay = max_delay
        self.exponential_base = exponential_base
        self.jitter = jitter
        self.exceptions = exceptions
        self.stop_after_delay = stop_after_delay

    def should_retry(self, exception: Exception) -> bool:
        return isinstance(exception, self.exceptions)

    def calculate_delay(self, attempt: int) -> float:
        """Wait before retry number ``attempt + 1`` (``attempt`` is 0-based)."""
        delay = min(self.initial_delay * self.exponential_base**attempt, self.max_delay)
        return delay * (0.5 + random.random()) if self.jitter else delay

    def budget_exceeded(self, started: float, delay: float) -> bool:
        if self.stop_after_delay is None:
            return False
        return time.monotonic() - started + delay > self.stop_after_delay

    def next_delay(self, name: str, exc: Exception, attempt: int, started: float) -> float:
        """Seconds to wait before the next attempt, or raise to stop.

        Raises:
            Exception: ``exc`` itself when it is not retryable.
            RetryError: When attempts or the time budget are used up.
        """
        if not self.should_retry(exc):
            raise exc

        delay = self.calculate_delay(attempt)
        attempts = attempt + 1
        if attempts >= self.max_attempts or self.budget_exceeded(started, delay):
            logger.error(
                "Giving up on %s after %d attempt(s)",
                name,
                attempts,
                extra={"function": name, "attempts": attempts, "error": str(exc)},
            )
            raise RetryError(exc, attempts) from exc

        logger.warning(
            "Retrying %s in %.2fs (attempt %d/%d): %s",
            name,
            delay,
            attempts,
            self.max_attempts,
            exc,
            extra={"function": name, "attempt": attempts, "delay": delay},
        )
        return delay


def retry(
    max_attempts: int = 3,
    initial_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    jitter: bool = True,
    exceptions: tuple[type[Exception], ...] = (Exception,),
    stop_after_delay: float | None = None,
    on_retry: Callable[[Exception, int], None] | None = None,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Retry a sync or async callable according to a ``RetryStrategy``.

    ``on_retry(exc, attempt)`` runs before each wait.

    Example:
        ```python
        @retry(max_attempts=5, initial_delay=0.1, exceptions=(ConnectionError,))
        async def ping() -> bool: ...
        ```
    """
    strategy = RetryStrategy(
        max_attempts=max_attempts,
        initial_delay=initial_delay,
        max_delay=max_delay,
        exponential_base=exponential_base,
        jitter=jitter,
        exceptions=exceptions,
        stop_after_delay=stop_after_delay,
    )

    def _wait_for(func: Callable[..., Any], exc: Exception, attempt: int, started: float) -> float:
        delay = strategy.next_delay(func.__qualname__, exc, attempt, started)
        if on_retry is not None:
            on_retry(exc, attempt + 1)
        return delay

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        if inspect.iscoroutinefunction(func):

            @wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> T:
                started = time.monotonic()
                attempt = 0
                while True:
                    try:
                        return await func(*args, **kwargs)
                    except Exception as e:
                        delay = _wait_for(func, e, attempt, started)
                    await asyncio.sleep(delay)
                    attempt += 1

            return async_wrapper  # type: ignore[return-value]

        @wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> T:
            started = time.monotonic()
            attempt = 0
            while True:
                try:
                    return func(*args, **kwargs)
                except Exception as e:
                    delay = _wait_for(func, e, attempt, started)
                time.sleep(delay)
                attempt += 1

        return sync_wrapper

    return decorator


__all__ = ["RetryError", "RetryStrategy", "retry"]
