"""Retry policies for single-feature AI calls.

The integration service never retries. Routes that run one feature at a
time retry classified, retryable ``AiServiceError`` failures with
exponential backoff, using a policy tuned per feature.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from devlog.core.errors import AiServiceError

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_RETRY_DELAY_MS = 30000


@dataclass(frozen=True)
class RetryPolicy:
    """Backoff parameters for one feature.

    Attributes:
        max_retries: Retries after the first attempt.
        backoff_multiplier: Growth factor between delays.
        base_delay_ms: Delay before the first retry.
    """

    max_retries: int
    backoff_multiplier: float
    base_delay_ms: int


DEFAULT_RETRY_POLICY = RetryPolicy(max_retries=2, backoff_multiplier=1.5, base_delay_ms=2000)

RETRY_POLICIES: dict[str, RetryPolicy] = {
    "styling": RetryPolicy(max_retries=3, backoff_multiplier=1.5, base_delay_ms=1000),
    "seo": RetryPolicy(max_retries=2, backoff_multiplier=2.0, base_delay_ms=2000),
    "seo_validation": RetryPolicy(max_retries=2, backoff_multiplier=2.0, base_delay_ms=2000),
    "categories": RetryPolicy(max_retries=3, backoff_multiplier=1.2, base_delay_ms=1500),
}


def policy_for(feature: str) -> RetryPolicy:
    return RETRY_POLICIES.get(feature, DEFAULT_RETRY_POLICY)


def retry_delay_ms(policy: RetryPolicy, attempt: int) -> int:
    """Delay before retry number ``attempt`` (0-based), capped at 30 seconds."""
    delay = policy.base_delay_ms * policy.backoff_multiplier**attempt
    return int(min(delay, MAX_RETRY_DELAY_MS))


def is_retryable(error: BaseException) -> bool:
    return isinstance(error, AiServiceError) and error.retryable


def _log_retry(retry_state: RetryCallState) -> None:
    error = retry_state.outcome.exception() if retry_state.outcome else None
    wait = retry_state.next_action.sleep if retry_state.next_action else 0
    logger.warning(
        f"Retrying AI call after attempt {retry_state.attempt_number} "
        f"in {wait:.1f}s: {error}"
    )


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy = DEFAULT_RETRY_POLICY,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Await ``operation``, retrying retryable AI errors.

    Args:
        operation: Zero-argument coroutine factory, called once per attempt.
        policy: Backoff parameters.
        sleep: Awaitable sleep, replaceable in tests.

    Returns:
        The first successful result.

    Raises:
        AiServiceError: The last error, once retries are exhausted or the
            error is not retryable. Other exceptions propagate immediately.
    """
    retrying = AsyncRetrying(
        stop=stop_after_attempt(policy.max_retries + 1),
        wait=wait_exponential(
            multiplier=policy.base_delay_ms / 1000,
            exp_base=policy.backoff_multiplier,
            max=MAX_RETRY_DELAY_MS / 1000,
        ),
        retry=retry_if_exception(is_retryable),
        before_sleep=_log_retry,
        sleep=sleep,
        reraise=True,
    )

    async for attempt in retrying:
        with attempt:
            result = await operation()
    return result
