"""
Retry sequencing with configurable backoff.

This module provides the retry configuration and the sequencer that
re-invokes an operation on retryable failures, waiting between attempts
according to a constant, linear or exponential backoff schedule.
"""

import asyncio
import random
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, FrozenSet, Optional, TypeVar

import structlog

from resilient_http.shared.exceptions import (
    ConfigurationError, ErrorKind, DEFAULT_RETRYABLE_KINDS, NEVER_RETRYABLE,
    classify_error, is_retryable_error
)
from resilient_http.infrastructure.resilience.hooks import invoke_hook

logger = structlog.get_logger(__name__)

T = TypeVar('T')

# on_retry(attempt_number, delay_seconds, error)
RetryCallback = Callable[[int, float, BaseException], None]


class BackoffType(str, Enum):
    """Available backoff strategies."""
    CONSTANT = "constant"
    LINEAR = "linear"
    EXPONENTIAL = "exponential"


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for retry behavior.

    ``max_attempts`` counts retries, so an operation runs at most
    ``max_attempts + 1`` times.
    """
    max_attempts: int = 3
    backoff_type: BackoffType = BackoffType.EXPONENTIAL
    initial_delay: float = 0.2  # seconds
    on_retry: Optional[RetryCallback] = None
    max_delay: Optional[float] = None  # seconds
    jitter: bool = False
    retryable_kinds: FrozenSet[ErrorKind] = DEFAULT_RETRYABLE_KINDS

    def __post_init__(self):
        if not isinstance(self.max_attempts, int) or self.max_attempts < 0:
            raise ConfigurationError(
                f"max_attempts must be a non-negative integer, got: {self.max_attempts}",
                field="max_attempts", value=self.max_attempts
            )
        if self.initial_delay < 0:
            raise ConfigurationError(
                f"initial_delay must be non-negative, got: {self.initial_delay}",
                field="initial_delay", value=self.initial_delay
            )
        if self.max_delay is not None and self.max_delay < 0:
            raise ConfigurationError(
                f"max_delay must be non-negative, got: {self.max_delay}",
                field="max_delay", value=self.max_delay
            )
        if not isinstance(self.backoff_type, BackoffType):
            object.__setattr__(self, "backoff_type", BackoffType(self.backoff_type))
        # Circuit-open and cancellation are never retried, whatever the caller asks for
        object.__setattr__(self, "retryable_kinds", frozenset(self.retryable_kinds) - NEVER_RETRYABLE)

    def calculate_delay(self, attempt: int) -> float:
        """Calculate delay before retry number ``attempt`` (1-based)."""
        if self.backoff_type == BackoffType.CONSTANT:
            delay = self.initial_delay
        elif self.backoff_type == BackoffType.LINEAR:
            delay = self.initial_delay * attempt
        else:
            delay = self.initial_delay * (2 ** (attempt - 1))

        if self.max_delay is not None:
            delay = min(delay, self.max_delay)

        # Add jitter to prevent thundering herd
        if self.jitter:
            jitter_range = delay * 0.1  # 10% jitter
            delay += random.uniform(-jitter_range, jitter_range)

        return max(0.0, delay)


class RetrySequencer:
    """Re-invokes an async operation on retryable failures."""

    def __init__(
        self,
        config: RetryConfig,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
    ):
        """
        Initialize retry sequencer.

        Args:
            config: Retry configuration
            sleep: Awaitable delay function; must be cancellable
        """
        self.config = config
        self._sleep = sleep

    async def execute(self, operation: Callable[[], Awaitable[T]]) -> T:
        """
        Run ``operation``, retrying qualifying failures.

        Args:
            operation: Zero-argument coroutine function performing one attempt

        Returns:
            Result of the first successful attempt

        Raises:
            The last error, unchanged, once retries are exhausted or the
            error is not retryable. ``asyncio.CancelledError`` propagates
            immediately.
        """
        attempt = 0

        while True:
            try:
                return await operation()
            except Exception as e:
                attempt += 1

                if not is_retryable_error(e, self.config.retryable_kinds):
                    logger.warning(
                        "Non-retryable exception occurred",
                        attempt=attempt,
                        kind=classify_error(e).value,
                        exception=type(e).__name__,
                        error=str(e)
                    )
                    raise

                if attempt > self.config.max_attempts:
                    logger.error(
                        "All retry attempts exhausted",
                        max_attempts=self.config.max_attempts,
                        exception=type(e).__name__,
                        last_exception=str(e)
                    )
                    raise

                delay = self.config.calculate_delay(attempt)
                logger.warning(
                    "Retryable exception occurred, waiting before retry",
                    attempt=attempt,
                    delay_seconds=delay,
                    exception=type(e).__name__,
                    error=str(e)
                )
                invoke_hook(self.config.on_retry, "on_retry", attempt, delay, e)

            await self._sleep(delay)
