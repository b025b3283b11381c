"""
Bounded retry with exponential backoff and jitter for flaky upstream calls.
"""
import asyncio
import logging
import random
from dataclasses import dataclass, field
from typing import Awaitable, Callable, FrozenSet, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryConfig:
    max_retries: int = 3
    base_delay_ms: int = 1000
    max_delay_ms: int = 15000
    retryable_statuses: FrozenSet[int] = field(
        default_factory=lambda: frozenset({429, 500, 502, 503, 504})
    )


DEFAULT_RETRY_CONFIG = RetryConfig()


def extract_status(error: BaseException) -> Optional[int]:
    """Find an HTTP status on an exception from httpx, anthropic, or our own UpstreamError."""
    for attr in ("status", "status_code"):
        value = getattr(error, attr, None)
        if isinstance(value, int):
            return value
    response = getattr(error, "response", None)
    if response is not None:
        value = getattr(response, "status_code", None)
        if isinstance(value, int):
            return value
    return None


def backoff_delay_ms(attempt: int, config: RetryConfig) -> float:
    delay = config.base_delay_ms * (2 ** attempt) + random.uniform(0, 1000)
    return min(delay, config.max_delay_ms)


async def with_retry(
    fn: Callable[[], Awaitable[T]],
    config: RetryConfig = DEFAULT_RETRY_CONFIG,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """
    Await ``fn()`` up to ``config.max_retries + 1`` times.

    A non-retryable status stops the loop immediately, except on the first
    attempt. After the last attempt the final error is re-raised.
    """
    last_error: Optional[Exception] = None

    for attempt in range(config.max_retries + 1):
        try:
            return await fn()
        except Exception as e:
            last_error = e
            status = extract_status(e)

            if status and status not in config.retryable_statuses and attempt > 0:
                raise

            if attempt < config.max_retries:
                delay_ms = backoff_delay_ms(attempt, config)
                logger.warning(
                    f"Upstream call failed (attempt {attempt + 1}/{config.max_retries + 1}, "
                    f"status={status}): {e}. Retrying in {delay_ms / 1000:.2f}s..."
                )
                await sleep(delay_ms / 1000)

    raise last_error
