"""Retry policy for Dataverse Web API calls.

Dataverse answers service protection limits with 429 and a
``Retry-After`` header, and gateway trouble with 503/504 or a dropped
connection. Those are retried. A plain 500 usually carries a plugin or
query fault that will fail the same way again, so it is not.
"""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import TYPE_CHECKING, TypeVar

from powerplatform_mcp.core.errors import (
    ServiceError,
    ServiceTimeoutError,
    ServiceUnavailableError,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

T = TypeVar("T")

RETRYABLE_STATUS = frozenset({429, 503, 504})


@dataclass(frozen=True, slots=True)
class RetryConfig:
    """How many times, and how patiently, to retry a Web API call."""

    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 60.0
    jitter: bool = True


def parse_retry_after(value: str | None) -> float | None:
    """Seconds to wait from a ``Retry-After`` header.

    Accepts both delta-seconds and HTTP-date forms; anything else is
    ignored.
    """
    if not value:
        return None
    value = value.strip()
    try:
        return max(float(value), 0.0)
    except ValueError:
        pass
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return max((when - datetime.now(timezone.utc)).total_seconds(), 0.0)


def is_retryable(error: BaseException) -> bool:
    """True for throttling, gateway errors and requests that got no answer."""
    if not isinstance(error, ServiceError):
        return False
    if error.status_code is None:
        return isinstance(error, (ServiceTimeoutError, ServiceUnavailableError))
    return error.status_code in RETRYABLE_STATUS


def backoff_delay(attempt: int, config: RetryConfig, error: ServiceError) -> float:
    """Seconds to sleep before retry number ``attempt + 1``.

    A server-provided ``Retry-After`` wins over the exponential schedule.
    """
    if error.retry_after is not None:
        return min(error.retry_after, config.max_delay)

    delay = min(config.base_delay * 2**attempt, config.max_delay)
    if config.jitter:
        delay *= random.uniform(0.5, 1.5)
    return delay


async def retry_with_backoff(
    fn: Callable[[], Awaitable[T]],
    config: RetryConfig | None = None,
    on_retry: Callable[[int, float, ServiceError], None] | None = None,
) -> T:
    """Await ``fn()``, retrying retryable service errors.

    Args:
        fn: Zero-arg callable returning an awaitable.
        config: Retry configuration. Uses defaults if None.
        on_retry: Optional callback(attempt, delay, error) before each retry.

    Raises:
        The last ServiceError once retries run out, or any other
        error immediately.
    """
    cfg = config or RetryConfig()
    attempt = 0
    while True:
        try:
            return await fn()
        except ServiceError as e:
            if attempt >= cfg.max_retries or not is_retryable(e):
                raise
            delay = backoff_delay(attempt, cfg, e)
            attempt += 1
            if on_retry is not None:
                on_retry(attempt, delay, e)
            await asyncio.sleep(delay)
