"""
Retry logic with exponential backoff for the listing fetch.

Only the HTTP fetch is retried. Everything else in the core is local,
synchronous and cannot fail transiently.
"""

import time
import functools
from typing import Callable, Type, Tuple, Optional


RETRYABLE_STATUS_CODES = frozenset({
    408,  # Request Timeout
    429,  # Too Many Requests
    500,  # Internal Server Error
    502,  # Bad Gateway
    503,  # Service Unavailable
    504,  # Gateway Timeout
})


class RetryError(Exception):
    """Raised when all retry attempts are exhausted."""

    def __init__(self, message: str, attempts: int):
        self.attempts = attempts
        super().__init__(message)


def exponential_backoff(
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    exponential_base: float = 2.0,
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
    on_retry: Optional[Callable] = None,
    sleep: Callable[[float], None] = time.sleep,
):
    """
    Decorator for retrying a callable with exponential backoff.

    Args:
        max_retries: Retry attempts after the first call (0 = no retries)
        base_delay: Delay before the first retry, in seconds
        max_delay: Upper bound for a single delay
        exponential_base: Factor applied to the delay after each retry
        exceptions: Exception types that trigger a retry; others propagate
        on_retry: Optional callback(attempt, exception, delay)
        sleep: Sleep function, replaceable in tests

    Raises:
        RetryError: chained from the last exception once retries run out

    Example:
        @exponential_backoff(max_retries=2, exceptions=(requests.Timeout,))
        def get_listing(url):
            return requests.get(url, timeout=15)
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            delay = base_delay
            attempts = max_retries + 1

            for attempt in range(1, attempts + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if attempt == attempts:
                        raise RetryError(
                            f"Failed after {attempts} attempts: {e}", attempts
                        ) from e

                    current_delay = min(delay, max_delay)
                    if on_retry:
                        on_retry(attempt, e, current_delay)
                    sleep(current_delay)
                    delay *= exponential_base

        return wrapper
    return decorator


def should_retry_http_status(status_code: int) -> bool:
    """Return True for HTTP statuses worth another attempt (timeouts, rate limits, 5xx gateways)."""
    return status_code in RETRYABLE_STATUS_CODES
