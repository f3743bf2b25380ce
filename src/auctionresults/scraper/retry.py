"""
Retry wrapper for fallible scraper steps.

Only transient failures are retried: errors whose message mentions a
timeout, the network, navigation, or a missing element. Anything else is a
real bug or a structural change on the site and propagates on the first
attempt so it is not hidden behind retries.
"""

import asyncio
from typing import Awaitable, Callable, TypeVar

from auctionresults.core.constants import RECOVERABLE_ERROR_PATTERNS
from auctionresults.exceptions import RetryExhaustedError
from auctionresults.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


def is_recoverable_error(error: BaseException) -> bool:
    """Check whether an error belongs to the retryable allow-list.

    Example:
        >>> is_recoverable_error(Exception("Navigation timeout of 30000ms exceeded"))
        True
        >>> is_recoverable_error(ValueError("Unexpected token in JSON"))
        False
    """
    message = str(error).lower()
    return any(pattern in message for pattern in RECOVERABLE_ERROR_PATTERNS)


async def safe_operation(
    operation: Callable[[], Awaitable[T]],
    name: str,
    max_retries: int = 3,
    base_delay: float = 2.0,
    sleep: Sleep = asyncio.sleep,
) -> T:
    """Run an async operation, retrying transient failures.

    After failed attempt ``n`` (1-based) the wrapper waits
    ``base_delay * n`` seconds, so the defaults wait 2s, 4s and 6s.

    Args:
        operation: Zero-argument coroutine function to run.
        name: Human readable step name for logs and errors.
        max_retries: Total number of attempts.
        base_delay: Delay unit in seconds.
        sleep: Awaitable sleep function.

    Returns:
        Whatever the operation returns.

    Raises:
        RetryExhaustedError: If every attempt failed with a transient error.
        Exception: The original error, immediately, if it is not transient.
    """
    last_error = None
    for attempt in range(1, max_retries + 1):
        try:
            return await operation()
        except Exception as e:
            if not is_recoverable_error(e):
                raise
            last_error = e
            logger.warning("%s failed, attempt %d/%d: %s", name, attempt, max_retries, e)
            await sleep(base_delay * attempt)

    raise RetryExhaustedError(name, max_retries) from last_error
