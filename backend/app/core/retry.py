"""Retry with exponential backoff, restricted to rate-limited failures.

Delay before attempt k (k >= 2) is ``base_delay * 2 ** (k - 2)``: with the
defaults that is 1s, 2s between three attempts. Any other failure kind
propagates on the first attempt.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from backend.app.config import DEFAULT_RETRY_BASE_DELAY, DEFAULT_RETRY_MAX_ATTEMPTS
from backend.app.core.errors import ErrorKind

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[object]]


@dataclass(frozen=True)
class RetryPolicy:
    max_retries: int = DEFAULT_RETRY_MAX_ATTEMPTS
    base_delay: float = DEFAULT_RETRY_BASE_DELAY


def is_rate_limited(exc: BaseException) -> bool:
    return getattr(exc, "kind", None) is ErrorKind.RATE_LIMITED


def backoff_delay(attempt: int, base_delay: float) -> float:
    """Delay to wait before ``attempt`` (1-based); zero before the first."""
    if attempt < 2:
        return 0.0
    return base_delay * (2 ** (attempt - 2))


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = DEFAULT_RETRY_MAX_ATTEMPTS,
    base_delay: float = DEFAULT_RETRY_BASE_DELAY,
    *,
    sleep: Sleep = asyncio.sleep,
) -> T:
    """Await ``operation()`` up to ``max_retries`` times, retrying only on rate limits."""
    if max_retries < 1:
        raise ValueError("max_retries must be >= 1")

    attempt = 1
    while True:
        try:
            return await operation()
        except Exception as exc:
            if not is_rate_limited(exc) or attempt >= max_retries:
                raise
            attempt += 1
            delay = backoff_delay(attempt, base_delay)
            logger.warning(
                "Rate limited (%s); retrying in %.2fs (attempt %d/%d)",
                exc, delay, attempt, max_retries,
            )
            await sleep(delay)


async def retry_with_policy(operation: Callable[[], Awaitable[T]], policy: RetryPolicy, *, sleep: Sleep = asyncio.sleep) -> T:
    return await with_retry(operation, policy.max_retries, policy.base_delay, sleep=sleep)
