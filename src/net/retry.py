"""Retry executor: bounded, classified retries with exponential backoff.

Delay before retry ``n`` (zero-based) is ``base * 2**n + uniform(0, jitter)``.
Fatal errors propagate at once without sleeping. The executor holds no
mutable state, so one instance can serve any number of concurrent tasks.
"""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import TypeVar

import httpx

from src.core.config import RetryPolicyConfig
from src.core.errors import ExhaustedRetries, FetchError

__all__ = ["RetryPolicy", "Verdict", "classify_http_error", "execute"]

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Statuses meaning the resource is gone; retrying cannot help.
GONE_STATUSES = frozenset({404, 410})


class Verdict(Enum):
    FATAL = "fatal"
    RETRYABLE = "retryable"


@dataclass(frozen=True)
class RetryPolicy:
    """Retry ceiling and backoff for one call site."""

    max_attempts: int = 3
    base_delay_s: float = 1.0
    jitter_s: float = 0.5

    @classmethod
    def from_config(cls, config: RetryPolicyConfig) -> "RetryPolicy":
        return cls(
            max_attempts=config.max_attempts,
            base_delay_s=config.base_delay_s,
            jitter_s=config.jitter_s,
        )

    def delay_for(self, attempt: int) -> float:
        return self.base_delay_s * (2**attempt) + random.uniform(0, self.jitter_s)


def classify_http_error(error: BaseException) -> Verdict:
    """404/410 and non-transport errors are fatal; the rest is transient."""
    if isinstance(error, FetchError):
        return Verdict.FATAL if error.status_code in GONE_STATUSES else Verdict.RETRYABLE
    if isinstance(error, httpx.TransportError):
        return Verdict.RETRYABLE
    return Verdict.FATAL


async def execute(
    operation: Callable[[], Awaitable[T]],
    classify: Callable[[BaseException], Verdict] = classify_http_error,
    policy: RetryPolicy | None = None,
) -> T:
    """Run ``operation`` until it succeeds, fails fatally, or runs out of attempts.

    Args:
        operation: Async callable with no arguments (one remote call).
        classify: Maps a raised error to FATAL or RETRYABLE.
        policy: Attempt ceiling and backoff; defaults to RetryPolicy().

    Returns:
        The operation's result.

    Raises:
        ExhaustedRetries: All attempts failed with retryable errors.
        Exception: The original error, when classified FATAL.
    """
    policy = policy or RetryPolicy()
    attempts = max(policy.max_attempts, 1)

    for attempt in range(attempts):
        try:
            return await operation()
        except Exception as e:
            if classify(e) is Verdict.FATAL:
                logger.debug("Fatal error, not retrying: %s", e)
                raise
            if attempt == attempts - 1:
                raise ExhaustedRetries(e, attempts) from e

            delay = policy.delay_for(attempt)
            logger.warning(
                "Remote call failed (attempt %d/%d): %s. Retrying in %.2fs",
                attempt + 1,
                attempts,
                e,
                delay,
            )
            await asyncio.sleep(delay)

    msg = "Retry loop exited without error or result"
    raise RuntimeError(msg)
