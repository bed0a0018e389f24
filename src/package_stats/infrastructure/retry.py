"""Tenacity-based retry policy for registry requests.

Transient faults and primary rate limits are retried up to
``max_retries`` times; secondary (abuse-detection) rate limits are always
retried.  Waits honour the server's hint when there is one, fall back to
``retry_after_seconds`` for rate limits, and back off quadratically for
transient faults.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from tenacity import AsyncRetrying, RetryCallState, retry_if_exception_type
from tenacity.stop import stop_base
from tenacity.wait import wait_base

from package_stats.domain.exceptions import (
    GitHubRateLimitError,
    SecondaryRateLimitError,
    TransientRegistryError,
)

logger = logging.getLogger(__name__)

RETRYABLE_ERRORS: tuple[type[Exception], ...] = (TransientRegistryError, GitHubRateLimitError)

Sleep = Callable[[float], Awaitable[None]]


def _last_exception(retry_state: RetryCallState) -> BaseException | None:
    outcome = retry_state.outcome
    return outcome.exception() if outcome is not None else None


@dataclass(frozen=True)
class StopAfterRetries(stop_base):
    """Stop once *max_retries* retries are spent, never for secondary limits."""

    max_retries: int

    def __call__(self, retry_state: RetryCallState) -> bool:
        if isinstance(_last_exception(retry_state), SecondaryRateLimitError):
            return False
        # attempt_number counts the initial try
        return retry_state.attempt_number > self.max_retries


@dataclass(frozen=True)
class WaitRetryAfterOrBackoff(wait_base):
    """Wait strategy that prefers the server's hint over a computed delay."""

    retry_after_seconds: float

    def __call__(self, retry_state: RetryCallState) -> float:
        exc = _last_exception(retry_state)
        if isinstance(exc, GitHubRateLimitError):
            if exc.retry_after is not None:
                return max(0.0, exc.retry_after)
            return self.retry_after_seconds
        return min(self.retry_after_seconds, float(retry_state.attempt_number**2))


def _log_retry(retry_state: RetryCallState) -> None:
    delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
    logger.warning(
        "Retrying after %.0f seconds (attempt %d): %s",
        delay,
        retry_state.attempt_number,
        _last_exception(retry_state),
    )


@dataclass(frozen=True)
class RetryPolicy:
    """Retry configuration for the registry client.

    Attributes
    ----------
    max_retries : int
        Retries allowed after the first attempt for transient faults and
        primary rate limits.
    retry_after_seconds : float
        Wait used when a rate-limited response carries no reset hint; also
        caps the transient-fault backoff.
    """

    max_retries: int = 3
    retry_after_seconds: float = 180.0

    def retrying(self, sleep: Sleep = asyncio.sleep) -> AsyncRetrying:
        """Return a fresh ``AsyncRetrying`` controller for one request."""
        return AsyncRetrying(
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            stop=StopAfterRetries(self.max_retries),
            wait=WaitRetryAfterOrBackoff(self.retry_after_seconds),
            before_sleep=_log_retry,
            sleep=sleep,
            reraise=True,
        )
