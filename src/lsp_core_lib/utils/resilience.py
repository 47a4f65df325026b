"""Resilience utilities for Legal Services Platform services.

This module provides standard retry policies for handling transient failures
when talking to collaborator services (case store, notifications).
"""

import logging
from typing import Callable, Tuple, Type, TypeVar

import httpx
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_retryable_http_error(exc: BaseException) -> bool:
    """Transport failures and 5xx responses are transient; 4xx are not."""
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500
    return isinstance(exc, httpx.TransportError)


def create_custom_retry(
    max_attempts: int = 5,
    min_wait: int = 2,
    max_wait: int = 32,
    multiplier: int = 1,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    only_server_errors: bool = False,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Create a custom retry decorator with specific parameters.

    Args:
        max_attempts: Maximum number of attempts
        min_wait: Minimum wait time between retries (seconds)
        max_wait: Maximum wait time between retries (seconds)
        multiplier: Exponential backoff multiplier
        retry_on: Exception types that trigger a retry
        only_server_errors: Retry HTTP status errors only for 5xx responses

    Returns:
        A retry decorator configured with the specified parameters

    Example:
        ```python
        store_retry = create_custom_retry(max_attempts=3, min_wait=1, max_wait=4)

        @store_retry
        async def fetch_case():
            ...
        ```
    """

    def should_retry(exc: BaseException) -> bool:
        if not isinstance(exc, retry_on):
            return False
        if only_server_errors:
            return is_retryable_http_error(exc)
        return True

    return retry(
        retry=retry_if_exception(should_retry),
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=multiplier, min=min_wait, max=max_wait),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
