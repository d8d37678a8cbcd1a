"""
Bounded retry with exponential backoff.

This module wraps fallible network operations so transient transport
failures are retried transparently. The executor blocks the caller while it
waits; it is meant for background-capable contexts only.

Example:
    >>> from grocersync.core.sync.retry import RetryConfig, RetryExecutor
    >>>
    >>> executor = RetryExecutor(RetryConfig(max_attempts=3, base_delay=1.0))
    >>> state = executor.run(gateway.fetch_server_state)
    >>> # Attempts up to 3 times, sleeping 1s then 2s between attempts

Configuration:
    - Default attempts: 3 (total calls, including the first)
    - Default base delay: 1.0 seconds
    - Default multiplier: 2.0x per retry

Operations passed to the executor must be safe to repeat: a retried call
can duplicate a server-side effect whose response was lost.
"""

import functools
import logging
import time
from collections.abc import Callable
from typing import Any, TypeVar

import httpx

from grocersync.core.sync.exceptions import RetriesExhaustedError, TransportError

logger = logging.getLogger(__name__)

# Type variable for the wrapped operation's return type
T = TypeVar("T")


class RetryConfig:
    """
    Configuration for retry behavior.

    Attributes:
        max_attempts: Total number of calls allowed (default: 3)
        base_delay: Delay in seconds before the first retry (default: 1.0)
        multiplier: Exponential backoff multiplier (default: 2.0)
    """

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        multiplier: float = 2.0,
    ) -> None:
        """
        Initialize retry configuration.

        Args:
            max_attempts: Total number of calls allowed
            base_delay: Delay in seconds before the first retry
            multiplier: Exponential backoff multiplier

        Raises:
            ValueError: If parameters are invalid
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if base_delay < 0:
            raise ValueError("base_delay must be non-negative")
        if multiplier < 1.0:
            raise ValueError("multiplier must be >= 1.0")

        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.multiplier = multiplier

    def calculate_delay(self, retry: int) -> float:
        """
        Calculate the wait before a given retry.

        Uses exponential backoff: delay = base_delay * (multiplier ^ (retry - 1))

        Args:
            retry: Retry number, 1 for the wait before the second call

        Returns:
            Delay in seconds
        """
        if retry < 1:
            return 0.0
        return self.base_delay * (self.multiplier ** (retry - 1))

    @property
    def total_budget(self) -> float:
        """Worst-case seconds spent sleeping for one operation."""
        return sum(self.calculate_delay(i) for i in range(1, self.max_attempts))


def is_retryable_error(exception: BaseException) -> bool:
    """
    Determine if an exception represents a transient, retryable error.

    Retryable errors include:
    - TransportError (already classified as transient)
    - 5xx server errors
    - Timeout, connection and other httpx request errors

    Non-retryable errors include:
    - ServerRejectedError and 4xx client errors
    - NetworkUnavailableError (a known-offline precondition)
    - LocalStoreError and programming errors

    Args:
        exception: Exception to check

    Returns:
        True if the error is retryable, False otherwise
    """
    if isinstance(exception, TransportError):
        return True

    # Check this first because HTTPStatusError is also an HTTPError
    if isinstance(exception, httpx.HTTPStatusError):
        return 500 <= exception.response.status_code < 600

    if isinstance(exception, (httpx.TimeoutException, httpx.RequestError)):
        return True

    return False


class RetryExecutor:
    """
    Runs operations with bounded exponential-backoff retry.

    Example:
        >>> executor = RetryExecutor(RetryConfig(max_attempts=3), sleep=lambda s: None)
        >>> executor.run(lambda: 42)
        42
    """

    def __init__(
        self,
        config: RetryConfig | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """
        Initialize the executor.

        Args:
            config: Retry configuration (defaults to RetryConfig())
            sleep: Function used to wait between attempts
        """
        self.config = config or RetryConfig()
        self._sleep = sleep

    def run(self, operation: Callable[[], T], *, name: str | None = None) -> T:
        """
        Call an operation until it succeeds or the attempts run out.

        Args:
            operation: Zero-argument callable to run
            name: Label used in log messages

        Returns:
            The operation's return value from the first successful attempt

        Raises:
            RetriesExhaustedError: If every attempt failed with a retryable error
            Exception: Any non-retryable error, immediately
        """
        label = name or getattr(operation, "__name__", repr(operation))
        max_attempts = self.config.max_attempts

        for attempt in range(1, max_attempts + 1):
            try:
                return operation()
            except Exception as e:
                if not is_retryable_error(e):
                    logger.debug(f"{label}: Non-retryable error on attempt {attempt}: {e}")
                    raise

                logger.warning(f"{label}: Attempt {attempt}/{max_attempts} failed: {e}")

                if attempt >= max_attempts:
                    raise RetriesExhaustedError(attempt, e) from e

                delay = self.config.calculate_delay(attempt)
                logger.debug(f"{label}: Retrying in {delay:.2f}s")
                self._sleep(delay)

        # max_attempts >= 1, so the loop always returns or raises
        raise RuntimeError("Retry loop completed without success or exception")


def with_retry(
    max_attempts: int = 3,
    base_delay: float = 1.0,
    multiplier: float = 2.0,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Decorator form of RetryExecutor.

    Example:
        >>> @with_retry(max_attempts=3, base_delay=0.5)
        ... def fetch() -> dict:
        ...     return client.get("/api/sync/state").json()
    """
    executor = RetryExecutor(
        RetryConfig(max_attempts=max_attempts, base_delay=base_delay, multiplier=multiplier)
    )

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        func_name = getattr(func, "__name__", repr(func))

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            return executor.run(lambda: func(*args, **kwargs), name=func_name)

        return wrapper

    return decorator


__all__ = [
    "RetryConfig",
    "RetryExecutor",
    "with_retry",
    "is_retryable_error",
]
