"""Fixed-backoff retry for REST queries."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")

DEFAULT_ATTEMPTS = 3
DEFAULT_DELAY = 0.5


async def retry_async(
    func: Callable[[], Awaitable[T]],
    attempts: int = DEFAULT_ATTEMPTS,
    delay: float = DEFAULT_DELAY,
) -> T:
    """
    Call func until it succeeds or attempts run out.

    The first success short-circuits. The delay is fixed and only slept
    between attempts, never after the last one.

    Args:
        func: Zero-argument coroutine factory
        attempts: Total number of calls allowed
        delay: Seconds to sleep between attempts

    Returns:
        Result of the first successful call

    Raises:
        Exception: The error raised by the last attempt
    """
    last_error: Exception | None = None

    for attempt in range(attempts):
        try:
            return await func()
        except Exception as e:
            last_error = e
            logger.debug("Attempt failed", attempt=attempt + 1, attempts=attempts, error=str(e))
            if attempt < attempts - 1:
                await asyncio.sleep(delay)

    raise last_error or RuntimeError("Max retries exceeded")
