"""
Exponential backoff for calls to external providers.

Attempt ``n`` that fails waits ``initial_delay * 2 ** (n - 1)`` seconds before
the next attempt, so the default policy (3 attempts, 1s) sleeps 1s then 2s and
re-raises the last error unchanged once attempts are exhausted.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Tuple, Type, TypeVar

from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_INITIAL_DELAY = 1.0


def _log_retry(retry_state) -> None:
    outcome = retry_state.outcome
    error = outcome.exception() if outcome is not None else None
    delay = retry_state.next_action.sleep if retry_state.next_action else 0
    logger.warning(
        f"Attempt {retry_state.attempt_number} failed ({error!r}); retrying in {delay:.2f}s"
    )


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    initial_delay: float = DEFAULT_INITIAL_DELAY,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    should_retry: Optional[Callable[[BaseException], bool]] = None,
    sleep: Optional[Callable[[float], Awaitable[None]]] = None,
) -> T:
    """
    Run ``operation`` with exponential backoff.

    Args:
        operation: zero-argument coroutine factory
        max_attempts: total attempts including the first one
        initial_delay: delay after the first failure, in seconds
        retry_on: exception types eligible for retry
        should_retry: extra predicate; errors for which it returns False are raised at once
        sleep: awaitable sleep function (tests pass a recorder)

    Returns:
        the value returned by the first successful attempt
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    condition = retry_if_exception_type(retry_on)
    if should_retry is not None:
        condition = condition & retry_if_exception(should_retry)

    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=initial_delay, exp_base=2, min=0, max=float("inf")),
        retry=condition,
        before_sleep=_log_retry,
        sleep=sleep or asyncio.sleep,
        reraise=True,
    )

    async for attempt in retrying:
        with attempt:
            return await operation()
