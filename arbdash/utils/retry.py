"""Retry with exponential backoff for upstream odds requests.

Odds providers drop connections now and then; a couple of spaced-out
retries recover most of those without hammering the provider's quota.
"""

from __future__ import annotations

import asyncio
import random
from typing import Any, Awaitable, Callable, Tuple, Type, TypeVar

from arbdash.utils.logging import get_logger


logger = get_logger("retry")


T = TypeVar("T")


async def retry_with_backoff(
    func: Callable[..., Awaitable[T]],
    *args: Any,
    max_retries: int = 3,
    initial_delay: float = 1.0,
    backoff_factor: float = 2.0,
    max_delay: float = 60.0,
    exceptions: Tuple[Type[BaseException], ...] = (Exception,),
    jitter: bool = True,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    **kwargs: Any,
) -> T:
    """Retry an async function with exponential backoff.

    Args:
        func: The async function to retry
        *args: Positional arguments to pass to func
        max_retries: Total number of attempts
        initial_delay: Delay in seconds before the second attempt
        backoff_factor: Multiplier for delay between attempts
        max_delay: Upper bound on a single delay
        exceptions: Exception types that trigger a retry; others propagate
        jitter: Whether to randomize each delay between 50% and 100%
        sleep: Awaitable used to wait between attempts
        **kwargs: Keyword arguments to pass to func

    Returns:
        The result of calling func

    Raises:
        The last exception raised by func if every attempt fails
    """
    if max_retries < 1:
        raise ValueError(f"max_retries must be >= 1, got {max_retries}")
    delay = initial_delay
    for attempt in range(1, max_retries + 1):
        try:
            return await func(*args, **kwargs)
        except exceptions as e:
            if attempt == max_retries:
                logger.warning("All %d attempts failed: %s", max_retries, e)
                raise
            actual_delay = delay * (0.5 + random.random() * 0.5) if jitter else delay
            actual_delay = min(actual_delay, max_delay)
            logger.debug("Attempt %d/%d failed, retrying in %.2fs: %s", attempt, max_retries, actual_delay, e)
            await sleep(actual_delay)
            delay *= backoff_factor
    raise RuntimeError("unreachable")
