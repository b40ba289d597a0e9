"""Retry policy for calls to external AI services.

Up to 3 attempts, exponential backoff starting at 1 s and doubling on each
attempt, plus up to 10 % random jitter. Authentication (401) and malformed
request (400) errors are never retried: they propagate on the first attempt.
"""

import asyncio
import logging
import random
from typing import Any, Awaitable, Callable, Optional, TypeVar

from openai import AuthenticationError, BadRequestError
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
)
from tenacity.wait import wait_base

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_ATTEMPTS = 3
INITIAL_DELAY_S = 1.0
JITTER_RATIO = 0.1
NON_RETRYABLE_STATUS = frozenset({400, 401})


class wait_exponential_jitter_ratio(wait_base):
    """Wait ``initial * 2^(n-1)`` seconds plus ``uniform(0, ratio)`` of that."""

    def __init__(
        self,
        initial: float = INITIAL_DELAY_S,
        jitter_ratio: float = JITTER_RATIO,
        rng: Callable[[float, float], float] = random.uniform,
    ) -> None:
        self.initial = initial
        self.jitter_ratio = jitter_ratio
        self.rng = rng

    def __call__(self, retry_state: RetryCallState) -> float:
        delay = self.initial * (2 ** (retry_state.attempt_number - 1))
        return delay + self.rng(0.0, self.jitter_ratio * delay)


def status_code_of(exc: BaseException) -> Optional[int]:
    """HTTP status carried by an SDK/HTTP exception, if any."""
    for attr in ("status_code", "status"):
        value = getattr(exc, attr, None)
        if isinstance(value, int):
            return value
    return None


def is_retryable(exc: BaseException) -> bool:
    """
    Decide whether a failed call may be retried.

    Returns:
        False for authentication and malformed-request errors, True for
        everything else (network errors, rate limits, 5xx)
    """
    if isinstance(exc, (AuthenticationError, BadRequestError)):
        return False
    return status_code_of(exc) not in NON_RETRYABLE_STATUS


def backoff_retrying(
    max_attempts: int = MAX_ATTEMPTS,
    initial_delay_s: float = INITIAL_DELAY_S,
    jitter_ratio: float = JITTER_RATIO,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> AsyncRetrying:
    """
    Build the retry controller used around every external call.

    Args:
        max_attempts: Total attempts including the first one
        initial_delay_s: Delay after the first failure
        jitter_ratio: Max extra delay as a fraction of the base delay
        sleep: Async sleep function (overridden in tests)

    Returns:
        AsyncRetrying that re-raises the last exception when exhausted
    """
    return AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential_jitter_ratio(initial_delay_s, jitter_ratio),
        retry=retry_if_exception(is_retryable),
        before_sleep=before_sleep_log(logger, logging.INFO),
        sleep=sleep,
        reraise=True,
    )


async def call_with_backoff(
    fn: Callable[..., Awaitable[T]],
    *args: Any,
    retrying: Optional[AsyncRetrying] = None,
    **kwargs: Any,
) -> T:
    """
    Await ``fn(*args, **kwargs)`` under the backoff policy.

    Example:
        >>> completion = await call_with_backoff(
        ...     client.chat.completions.create, model="gpt-4o-mini", messages=msgs
        ... )
    """
    controller = retrying.copy() if retrying is not None else backoff_retrying()
    return await controller(fn, *args, **kwargs)
