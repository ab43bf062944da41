"""Utility functions for the evidence store."""

import logging
from datetime import datetime, timezone
from typing import Callable

import httpx
from botocore.exceptions import (
    ConnectionClosedError,
    ConnectTimeoutError,
    EndpointConnectionError,
)
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
)

# Failures to reach the backend only. Service errors (missing keys, denied
# access, bad requests) fail immediately, and read timeouts are not retried
# so a single backend timeout bounds the operation.
RETRIABLE_EXCEPTIONS: tuple[type[BaseException], ...] = (
    EndpointConnectionError,
    ConnectionClosedError,
    ConnectTimeoutError,
    httpx.ConnectError,
    httpx.ConnectTimeout,
    ConnectionError,
)

logger = logging.getLogger(__name__)


def with_retry(
    stop_attempts: int = 3,
    wait_min: int = 1,
    wait_max: int = 10
) -> Callable:
    """Decorator to retry backend calls on transient network errors.

    Uses exponential backoff. Works for both plain functions and coroutines.

    Args:
        stop_attempts: Max number of attempts
        wait_min: Minimum wait time in seconds
        wait_max: Maximum wait time in seconds
    """
    return retry(
        stop=stop_after_attempt(stop_attempts),
        wait=wait_exponential(multiplier=1, min=wait_min, max=wait_max),
        retry=retry_if_exception_type(RETRIABLE_EXCEPTIONS),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True
    )


def utc_timestamp(moment: datetime | None = None) -> str:
    """Format an instant as ISO-8601 UTC with millisecond precision.

    Args:
        moment: Instant to format, defaults to now

    Returns:
        Timestamp such as ``2024-01-01T00:00:00.000Z``
    """
    if moment is None:
        moment = datetime.now(timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")
