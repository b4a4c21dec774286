"""Reusable retry policy for network-calling components."""

import asyncio
import random
from collections.abc import Awaitable, Callable
from typing import Annotated, TypeVar

import structlog
from pydantic import Field

from personal_feed.data_model import StrictBaseModel
from personal_feed.observability import FeedLogger


logger = structlog.get_logger()

T = TypeVar("T")


class RetryPolicy(StrictBaseModel):
    """Configuration for retry behavior.

    ``max_attempts`` counts the first call. With the default
    ``exponential_base`` of 1.0 the delay is fixed at ``base_delay_ms``;
    larger bases give exponential backoff capped at ``max_delay_ms``.
    """

    max_attempts: Annotated[int, Field(ge=1, le=10)] = 2
    base_delay_ms: Annotated[int, Field(ge=0, le=60000)] = 1000
    max_delay_ms: Annotated[int, Field(ge=0, le=300000)] = 30000
    exponential_base: Annotated[float, Field(ge=1.0, le=5.0)] = 1.0
    jitter_factor: Annotated[float, Field(ge=0.0, le=1.0)] = 0.0

    def should_retry(self, retryable: bool, attempt: int) -> bool:
        """Determine if another attempt should be made.

        Args:
            retryable: Whether the last error belongs to a retryable class.
            attempt: Attempt that just failed (1-indexed).

        Returns:
            True if the operation should be attempted again.
        """
        return retryable and attempt < self.max_attempts

    def get_delay_ms(self, attempt: int) -> int:
        """Calculate delay before the next attempt.

        Args:
            attempt: Attempt that just failed (1-indexed).

        Returns:
            Delay in milliseconds.
        """
        delay = self.base_delay_ms * (self.exponential_base ** (attempt - 1))
        delay = min(delay, self.max_delay_ms)
        jitter = delay * self.jitter_factor * random.random()  # noqa: S311
        return int(delay + jitter)


class RetryExhaustedError(Exception):
    """Raised when every allowed attempt failed.

    Attributes:
        attempts: Number of attempts made.
        last_error: Exception raised by the final attempt.
    """

    def __init__(self, attempts: int, last_error: Exception) -> None:
        super().__init__(f"Gave up after {attempts} attempts: {last_error}")
        self.attempts = attempts
        self.last_error = last_error


async def call_with_retry(
    operation: Callable[[], Awaitable[T]],
    *,
    policy: RetryPolicy,
    is_retryable: Callable[[Exception], bool],
    log: FeedLogger | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Run an async operation under a retry policy.

    Non-retryable errors propagate unchanged on the first occurrence.
    Retryable errors are retried until the policy gives up, after which
    ``RetryExhaustedError`` is raised with the last error attached.

    Args:
        operation: Zero-argument coroutine factory, called once per attempt.
        policy: Attempt limit and backoff.
        is_retryable: Predicate classifying errors as transient.
        log: Logger for attempt events.
        sleep: Awaitable sleep, injectable for tests.

    Returns:
        The operation's result.

    Raises:
        RetryExhaustedError: If all attempts failed with retryable errors.
        Exception: Any non-retryable error raised by the operation.
    """
    log = log or logger
    attempt = 0

    while True:
        attempt += 1
        try:
            return await operation()
        except Exception as exc:
            retryable = is_retryable(exc)
            if not retryable:
                raise
            if not policy.should_retry(retryable, attempt):
                log.warning(
                    "retry_exhausted",
                    attempts=attempt,
                    error=str(exc),
                )
                raise RetryExhaustedError(attempt, exc) from exc

            delay_ms = policy.get_delay_ms(attempt)
            log.warning(
                "retry_attempt",
                attempt=attempt,
                max_attempts=policy.max_attempts,
                delay_ms=delay_ms,
                error=str(exc),
            )
            await sleep(delay_ms / 1000.0)
