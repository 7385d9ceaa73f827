"""Timeout and retry wrapper for idempotent retrieval calls.

Every network read (embedding, vector index, relational store) goes
through call_with_retry so that each attempt carries an explicit timeout
and transient failures back off exponentially before giving up.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from ..config import RetryConfig
from ..exceptions import RetrievalUnavailable

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Failures worth another attempt. InvalidArgument / NotFound are deterministic.
TRANSIENT_ERRORS: tuple[type[BaseException], ...] = (
    RetrievalUnavailable,
    ConnectionError,
    OSError,
    asyncio.TimeoutError,
)


@dataclass(frozen=True)
class RetryPolicy:
    """Attempts, per-attempt timeout and backoff for one kind of call."""

    max_attempts: int = 3
    timeout_seconds: float = 15.0
    base_delay_seconds: float = 0.5
    max_delay_seconds: float = 4.0

    @classmethod
    def from_config(cls, config: RetryConfig) -> RetryPolicy:
        return cls(
            max_attempts=config.max_attempts,
            timeout_seconds=config.timeout_seconds,
            base_delay_seconds=config.base_delay_seconds,
            max_delay_seconds=config.max_delay_seconds,
        )

    def delay_for(self, attempt: int) -> float:
        """Backoff before retrying after ``attempt`` (1-based) failed."""
        return min(self.base_delay_seconds * (2 ** (attempt - 1)), self.max_delay_seconds)


async def call_with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    description: str,
    source: str | None = None,
) -> T:
    """Run ``operation`` with a timeout per attempt and exponential backoff.

    Args:
        operation: Zero-argument coroutine factory (called once per attempt)
        policy: Retry policy
        description: Human-readable call name for logs and errors
        source: Backend label attached to the final RetrievalUnavailable

    Returns:
        The operation's result

    Raises:
        RetrievalUnavailable: After the last transient failure
    """
    last_error: BaseException | None = None

    for attempt in range(1, policy.max_attempts + 1):
        try:
            return await asyncio.wait_for(operation(), timeout=policy.timeout_seconds)
        except asyncio.TimeoutError as e:
            last_error = e
            logger.warning(
                f"{description} timed out after {policy.timeout_seconds}s "
                f"(attempt {attempt}/{policy.max_attempts})"
            )
        except TRANSIENT_ERRORS as e:
            last_error = e
            logger.warning(f"{description} failed (attempt {attempt}/{policy.max_attempts}): {e}")

        if attempt < policy.max_attempts:
            await asyncio.sleep(policy.delay_for(attempt))

    if isinstance(last_error, RetrievalUnavailable):
        raise RetrievalUnavailable(
            f"{description} unavailable after {policy.max_attempts} attempts",
            source=source or last_error.source,
            cause=last_error,
        )
    raise RetrievalUnavailable(
        f"{description} unavailable after {policy.max_attempts} attempts",
        source=source,
        cause=last_error if isinstance(last_error, Exception) else None,
    )
