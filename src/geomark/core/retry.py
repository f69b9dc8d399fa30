"""
Retry with exponential backoff for transient geocoder failures.

Only the HTTP integration retries; the shape and measurement engine is
synchronous and never does.
"""

import asyncio
import functools
import logging
from typing import Any, Callable, Optional, Tuple, Type

import httpx

logger = logging.getLogger(__name__)

# Network-level failures worth another attempt
DEFAULT_TRANSIENT_EXCEPTIONS: Tuple[Type[Exception], ...] = (
    httpx.TransportError,
    ConnectionError,
    TimeoutError,
)


def exponential_backoff(
    attempt: int,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    exponential_base: float = 2.0,
) -> float:
    """
    Delay before retry number ``attempt + 1``, capped at ``max_delay``.

    Examples:
        >>> exponential_backoff(0), exponential_backoff(2)
        (1.0, 4.0)
    """
    return min(base_delay * exponential_base**attempt, max_delay)


def should_retry(
    exception: Exception,
    retryable_exceptions: Tuple[Type[Exception], ...],
) -> bool:
    """
    Whether ``exception`` is transient.

    HTTP status errors are judged by status code (429 and 5xx retry,
    everything else is final); other exceptions by type.
    """
    if isinstance(exception, httpx.HTTPStatusError):
        status = exception.response.status_code
        return status == 429 or status >= 500
    return isinstance(exception, retryable_exceptions)


def async_retry(
    max_attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    exponential_base: float = 2.0,
    retryable_exceptions: Optional[Tuple[Type[Exception], ...]] = None,
    on_retry: Optional[Callable[[Exception, int], None]] = None,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """
    Retry an async callable on transient failures.

    Args:
        max_attempts: Total attempts, the first call included
        base_delay: Delay before the first retry in seconds
        max_delay: Upper bound for any delay
        exponential_base: Growth factor between delays
        retryable_exceptions: Transient exception types, defaults to
            DEFAULT_TRANSIENT_EXCEPTIONS
        on_retry: Called with the error and the retry number before sleeping

    Example:
        @async_retry(max_attempts=3, base_delay=0.5)
        async def fetch(client, url):
            response = await client.get(url)
            response.raise_for_status()
            return response.json()
    """
    transient = retryable_exceptions or DEFAULT_TRANSIENT_EXCEPTIONS
    attempts = max(1, max_attempts)

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        name = getattr(func, "__name__", repr(func))

        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            attempt = 0
            while True:
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    attempt += 1
                    if not should_retry(e, transient):
                        logger.debug(f"{name} raised non-transient {type(e).__name__}")
                        raise
                    if attempt >= attempts:
                        logger.warning(f"{name} failed after {attempts} attempts: {e}")
                        raise

                    delay = exponential_backoff(attempt - 1, base_delay, max_delay, exponential_base)
                    logger.info(
                        f"Retrying {name} ({attempt}/{attempts - 1}) in {delay:.2f}s "
                        f"after {type(e).__name__}: {e}"
                    )
                    if on_retry is not None:
                        try:
                            on_retry(e, attempt)
                        except Exception as callback_error:
                            logger.error(f"on_retry callback failed: {callback_error}", exc_info=True)

                    await asyncio.sleep(delay)

        return wrapper

    return decorator
