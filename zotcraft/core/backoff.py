"""Shared exponential backoff with jitter for the Zotero and Craft clients."""

from __future__ import annotations

import asyncio
import logging
import random
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

T = TypeVar("T")

# HTTP status codes that should trigger a retry
RETRYABLE_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})

DEFAULT_MAX_RETRIES = 2
DEFAULT_BASE_DELAY = 0.5  # seconds
DEFAULT_MAX_DELAY = 8.0  # seconds


def calculate_delay(attempt: int, backoff_base: float, max_delay: float) -> float:
    """Delay for ``attempt`` (0-indexed): ``min(max_delay, base * 2^attempt)`` +/- 25%."""
    base_delay = min(max_delay, max(0.0, backoff_base * (2**attempt)))
    return base_delay * (1.0 + random.uniform(-0.25, 0.25))


async def retry_with_backoff(
    func: Callable[[], Awaitable[T]],
    *,
    is_retryable: Callable[[Exception], bool],
    max_retries: int = DEFAULT_MAX_RETRIES,
    base_delay: float = DEFAULT_BASE_DELAY,
    max_delay: float = DEFAULT_MAX_DELAY,
    operation_name: str = "operation",
) -> T:
    """Execute an async callable, retrying transient failures.

    Non-retryable errors and the error of the final attempt propagate
    unchanged, so callers see the client's own exception types.

    Args:
        func: Async callable to execute
        is_retryable: Predicate deciding whether an error is transient
        max_retries: Maximum number of retry attempts
        base_delay: Base delay between retries in seconds
        max_delay: Maximum delay between retries
        operation_name: Name of operation for logging

    Returns:
        Result of the callable
    """
    for attempt in range(max_retries + 1):
        try:
            return await func()
        except Exception as e:
            if not is_retryable(e) or attempt == max_retries:
                if attempt > 0:
                    logger.warning(
                        "retry_exhausted",
                        extra={
                            "operation": operation_name,
                            "attempts": attempt + 1,
                            "error": str(e),
                        },
                    )
                raise

            delay = calculate_delay(attempt, base_delay, max_delay)
            logger.debug(
                "retry_attempt",
                extra={
                    "operation": operation_name,
                    "attempt": attempt + 1,
                    "max_retries": max_retries,
                    "delay_seconds": round(delay, 2),
                    "error": str(e),
                },
            )
            await asyncio.sleep(delay)

    msg = f"{operation_name} failed"
    raise RuntimeError(msg)
