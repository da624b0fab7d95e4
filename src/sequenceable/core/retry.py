"""Bounded retry of counter operations that hit transient conflicts."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    stop_after_delay,
    wait_exponential,
)

from sequenceable.core.modules.sequence.models import RetryPolicy
from sequenceable.errors import AllocationTimeoutError, ConflictError

logger = structlog.get_logger(__name__)

T = TypeVar("T")


def _log_retry(retry_state: RetryCallState) -> None:
    error = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning("conflict_retry", attempt=retry_state.attempt_number, error=str(error))


def get_conflict_retrying(policy: RetryPolicy, deadline: float | None = None) -> AsyncRetrying:
    """Get configured AsyncRetrying for ConflictError with exponential backoff.

    Usage:
        async for attempt in get_conflict_retrying(policy):
            with attempt:
                counter = await counters.allocate(key, increment)

    Args:
        policy: Attempt bound and wait parameters
        deadline: Optional overall limit in seconds, checked between attempts

    Returns:
        AsyncRetrying raising RetryError once attempts or the deadline are exhausted.
    """
    stop = stop_after_attempt(policy.max_attempts)
    if deadline is not None:
        stop = stop | stop_after_delay(deadline)
    return AsyncRetrying(
        retry=retry_if_exception_type(ConflictError),
        stop=stop,
        wait=wait_exponential(multiplier=policy.multiplier, min=policy.min_wait, max=policy.max_wait),
        before_sleep=_log_retry,
    )


async def retry_conflicts(
    policy: RetryPolicy, description: str, call: Callable[[], Awaitable[T]], deadline: float | None = None
) -> T:
    """Await call(), repeating it on ConflictError until attempts or the deadline run out.

    The deadline also bounds each round trip, not only the pauses between attempts.
    Task cancellation is not intercepted.

    Raises:
        AllocationTimeoutError: conflicts persisted past max attempts or the deadline
    """
    timeout = deadline if deadline is not None else policy.timeout
    try:
        async with asyncio.timeout(timeout):
            async for attempt in get_conflict_retrying(policy, timeout):
                with attempt:
                    result = await call()
    except RetryError as e:
        attempts = e.last_attempt.attempt_number
        logger.error("conflict_retries_exhausted", operation=description, attempts=attempts)
        raise AllocationTimeoutError(f"Could not {description} after {attempts} attempts") from e.last_attempt.exception()
    except TimeoutError as e:
        logger.error("conflict_retry_timeout", operation=description, timeout=timeout)
        raise AllocationTimeoutError(f"Could not {description} within {timeout}s") from e
    return result
