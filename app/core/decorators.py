import functools
import logging
import time
from typing import Callable, Type, Tuple
import asyncio

import httpx

logger = logging.getLogger(__name__)

def _should_retry(
    error: Exception,
    transient_errors: Tuple[Type[Exception], ...],
    retry_on_status_codes: Tuple[int, ...],
) -> bool:
    if isinstance(error, transient_errors):
        return True
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code in retry_on_status_codes
    status = getattr(error, "status_code", None) or getattr(error, "status", None)
    return status in retry_on_status_codes

def retry_on_transient_error(
    max_retries: int = 3,
    initial_delay: float = 0.5,
    max_delay: float = 5.0,
    backoff_factor: float = 2.0,
    transient_errors: Tuple[Type[Exception], ...] = (httpx.TransportError,),
    retry_on_status_codes: Tuple[int, ...] = (429, 500, 502, 503, 504)
):
    """
    Decorator that retries an outbound HTTP call on transient errors with exponential backoff.

    Args:
        max_retries: Maximum number of retry attempts
        initial_delay: Initial delay between retries in seconds
        max_delay: Maximum delay between retries in seconds
        backoff_factor: Factor to increase delay between retries
        transient_errors: Tuple of exception types to retry on
        retry_on_status_codes: HTTP status codes to retry on, read from ``httpx.HTTPStatusError``
            or an error carrying ``status_code``/``status``
    """
    def decorator(func: Callable):
        def _log_retry(attempt: int, error: Exception, delay: float) -> None:
            logger.warning(
                f"Attempt {attempt + 1}/{max_retries + 1} failed for {func.__name__}. "
                f"Error: {str(error)}. Retrying in {delay:.2f} seconds..."
            )

        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            delay = initial_delay
            for attempt in range(max_retries + 1):
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    if attempt == max_retries or not _should_retry(e, transient_errors, retry_on_status_codes):
                        raise
                    _log_retry(attempt, e, delay)
                    await asyncio.sleep(delay)
                    delay = min(delay * backoff_factor, max_delay)

        @functools.wraps(func)
        def sync_wrapper(*args, **kwargs):
            delay = initial_delay
            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except Exception as e:
                    if attempt == max_retries or not _should_retry(e, transient_errors, retry_on_status_codes):
                        raise
                    _log_retry(attempt, e, delay)
                    time.sleep(delay)
                    delay = min(delay * backoff_factor, max_delay)

        return async_wrapper if asyncio.iscoroutinefunction(func) else sync_wrapper
    return decorator
