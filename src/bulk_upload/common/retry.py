"""Adaptive exponential backoff with jitter for async operations."""

import asyncio
import random
from dataclasses import dataclass, replace
from typing import Awaitable, Callable, TypeVar

from bulk_upload.common.classifier import ErrorCategory, classify_exception
from bulk_upload.common.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

JITTER_RATIO = 0.1


@dataclass(frozen=True)
class RetryPolicy:
    """How many retries follow the first attempt and how far apart they are."""

    max_attempts: int
    base_delay: float
    max_delay: float


_CATEGORY_POLICIES = {
    ErrorCategory.NETWORK: RetryPolicy(max_attempts=5, base_delay=2.0, max_delay=60.0),
    ErrorCategory.SERVER: RetryPolicy(max_attempts=3, base_delay=5.0, max_delay=30.0),
    ErrorCategory.PERMISSION: RetryPolicy(max_attempts=1, base_delay=1.0, max_delay=1.0),
    ErrorCategory.FILE: RetryPolicy(max_attempts=0, base_delay=0.0, max_delay=0.0),
}
_DEFAULT_POLICY = RetryPolicy(max_attempts=3, base_delay=1.0, max_delay=30.0)


def select_retry_policy(category: ErrorCategory) -> RetryPolicy:
    """Return the retry policy for a classified failure category."""
    return _CATEGORY_POLICIES.get(ErrorCategory(category), _DEFAULT_POLICY)


def backoff_delay(attempt: int, base_delay: float, max_delay: float) -> float:
    """Delay before retry number ``attempt`` (0-indexed).

    delay = min(base_delay * 2^attempt, max_delay) + uniform(0, 0.1 * delay)
    """
    delay = min(base_delay * (2**attempt), max_delay)
    return delay + random.uniform(0, delay * JITTER_RATIO)


@dataclass(frozen=True)
class RetryState:
    """Per-session retry state; never shared between operations."""

    policy: RetryPolicy
    attempts: int = 0


async def retry_with_backoff(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    adaptive: bool = True,
) -> T:
    """Run ``operation`` up to ``max_attempts + 1`` times.

    When ``adaptive`` is set, the first failure is classified and the policy
    for its category replaces the initial one for the rest of the session.
    Later failures never reclassify. Once retries are exhausted the last
    error is re-raised unchanged.
    """
    state = RetryState(
        policy=RetryPolicy(max_attempts, base_delay, max_delay)
    )
    while True:
        try:
            return await operation()
        except Exception as e:
            if adaptive and state.attempts == 0:
                classification = classify_exception(e)
                state = replace(
                    state,
                    policy=select_retry_policy(classification.category),
                )
                logger.info(
                    "Classified failure as %s; using policy %s",
                    classification.category.value,
                    state.policy,
                )

            if state.attempts >= state.policy.max_attempts:
                if state.policy.max_attempts > 0:
                    logger.error(
                        "All %d retry attempts exhausted: %s",
                        state.policy.max_attempts,
                        e,
                    )
                raise

            delay = backoff_delay(
                state.attempts, state.policy.base_delay, state.policy.max_delay
            )
            logger.warning(
                "Attempt %d/%d failed: %s. Retrying in %.2fs",
                state.attempts + 1,
                state.policy.max_attempts + 1,
                e,
                delay,
            )
            await asyncio.sleep(delay)
            state = replace(state, attempts=state.attempts + 1)
