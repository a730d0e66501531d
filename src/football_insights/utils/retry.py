"""Retry with exponential backoff for fixture-source calls.

football-data.org answers quota overruns with HTTP 429 and the number of
seconds until the request counter resets. A :class:`RetryableError` can
carry that hint as ``retry_after``; the decorator then waits at least that
long (still bounded by ``max_delay``) instead of the plain backoff delay.

Usage:
    from football_insights.utils.retry import retry_with_backoff

    @retry_with_backoff(max_retries=2, exceptions=(FixtureSourceError,))
    def fetch_matches(url):
        ...
"""

import logging
import time
from functools import wraps
from typing import Callable, Optional, Tuple, Type, TypeVar

T = TypeVar('T')


class RetryableError(Exception):
    """Failure worth retrying, optionally with a server-supplied wait."""

    def __init__(self, message: str = "", retry_after: Optional[float] = None):
        super().__init__(message)
        self.retry_after = retry_after


class NonRetryableError(Exception):
    """Failure that retrying cannot fix (bad credentials, unknown resource)."""


def next_delay(
    error: Exception,
    delay: float,
    max_delay: float,
) -> float:
    """Seconds to wait before the next attempt.

    A ``retry_after`` hint on the error overrides a shorter backoff delay.
    """
    hint = getattr(error, "retry_after", None)
    if hint is not None and hint > delay:
        delay = hint
    return min(delay, max_delay)


def retry_with_backoff(
    max_retries: int = 3,
    backoff_factor: float = 2.0,
    initial_delay: float = 1.0,
    max_delay: float = 60.0,
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
    on_retry: Optional[Callable[[Exception, int], None]] = None,
) -> Callable:
    """Decorator for retrying functions with exponential backoff.

    Args:
        max_retries: Retry attempts after the first call
        backoff_factor: Multiplier applied to the delay after each retry
        initial_delay: Seconds before the first retry
        max_delay: Upper bound for any single wait, including ``retry_after`` hints
        exceptions: Exception types that trigger a retry
        on_retry: Callback ``(exception, attempt)`` invoked before each wait

    Returns:
        Decorated function that re-raises the last error once retries run out
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            logger = logging.getLogger(func.__module__)
            backoff = initial_delay
            attempts = max_retries + 1

            for attempt in range(attempts):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if attempt == max_retries:
                        logger.error(f"{func.__name__} gave up after {attempts} attempts: {e}")
                        raise

                    wait = next_delay(e, backoff, max_delay)
                    logger.warning(
                        f"{func.__name__} attempt {attempt + 1}/{attempts} failed: {e}. "
                        f"Retrying in {wait:.1f}s"
                    )
                    if on_retry:
                        on_retry(e, attempt)

                    time.sleep(wait)
                    backoff = min(backoff * backoff_factor, max_delay)

        return wrapper
    return decorator
