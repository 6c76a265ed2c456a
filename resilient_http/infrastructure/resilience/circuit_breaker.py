"""
Failure-ratio circuit breaker.

The breaker counts call outcomes over a sampling window and opens when the
share of transport failures reaches the configured ratio, provided enough
calls were seen. While open every call is rejected without touching the
transport. After the break duration the next caller becomes the single
half-open trial, whose outcome either closes the circuit or re-opens it.
"""

import asyncio
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple, TypeVar

import structlog

from resilient_http.shared.exceptions import (
    CircuitBreakerOpenError, ConfigurationError, is_circuit_failure
)
from resilient_http.infrastructure.resilience.hooks import invoke_hook

logger = structlog.get_logger(__name__)

T = TypeVar('T')


class CircuitBreakerState(str, Enum):
    """Circuit breaker states."""
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass(frozen=True)
class CircuitBreakerEvent:
    """Payload passed to circuit breaker telemetry hooks."""
    name: str
    state: CircuitBreakerState
    failure_count: int
    success_count: int
    error: Optional[BaseException] = None


CircuitBreakerCallback = Callable[[CircuitBreakerEvent], None]


@dataclass(frozen=True)
class CircuitBreakerConfig:
    """Configuration for circuit breaker."""
    failure_ratio: float = 1.0  # share of failures that opens the circuit
    sampling_duration: float = 2.0  # seconds
    minimum_throughput: int = 4  # calls needed in a window before the ratio is evaluated
    break_duration: float = 3.0  # seconds to stay open before a trial call
    on_opened: Optional[CircuitBreakerCallback] = None
    on_closed: Optional[CircuitBreakerCallback] = None
    on_half_opened: Optional[CircuitBreakerCallback] = None

    def __post_init__(self):
        if not 0 < self.failure_ratio <= 1:
            raise ConfigurationError(
                f"failure_ratio must be in (0, 1], got: {self.failure_ratio}",
                field="failure_ratio", value=self.failure_ratio
            )
        if self.sampling_duration <= 0:
            raise ConfigurationError(
                f"sampling_duration must be positive, got: {self.sampling_duration}",
                field="sampling_duration", value=self.sampling_duration
            )
        if not isinstance(self.minimum_throughput, int) or self.minimum_throughput < 1:
            raise ConfigurationError(
                f"minimum_throughput must be an integer >= 1, got: {self.minimum_throughput}",
                field="minimum_throughput", value=self.minimum_throughput
            )
        if self.break_duration <= 0:
            raise ConfigurationError(
                f"break_duration must be positive, got: {self.break_duration}",
                field="break_duration", value=self.break_duration
            )


class CircuitBreaker:
    """Circuit breaker implementation for preventing cascading failures.

    State is shared by every task using the breaker. All reads and writes
    happen under one ``threading.Lock`` that is never held across an
    ``await``, so the breaker is safe from both tasks and threads.
    """

    def __init__(
        self,
        config: CircuitBreakerConfig,
        name: str = "api",
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize circuit breaker.

        Args:
            config: Circuit breaker configuration
            name: Identifier used in logs, events and rejections
            clock: Monotonic time source in seconds
        """
        self.name = name
        self.config = config
        self._clock = clock
        self._lock = threading.Lock()

        self._state = CircuitBreakerState.CLOSED
        self._window_start = clock()
        self._success_count = 0
        self._failure_count = 0
        self._opened_at: Optional[float] = None
        self._trial_in_flight = False
        # Bumped on every transition so late outcomes from an earlier phase are dropped
        self._generation = 0

    @property
    def state(self) -> CircuitBreakerState:
        with self._lock:
            return self._state

    async def call(self, operation: Callable[[], Awaitable[T]]) -> T:
        """
        Execute ``operation`` through the circuit breaker.

        Raises:
            CircuitBreakerOpenError: If the circuit is open or a half-open
                trial is already in flight
        """
        generation, is_trial = self._acquire()

        try:
            result = await operation()
        except asyncio.CancelledError:
            if is_trial:
                self._release_trial(generation)
            raise
        except Exception as e:
            self._record_outcome(generation, is_trial, e)
            raise

        self._record_outcome(generation, is_trial, None)
        return result

    def _acquire(self) -> Tuple[int, bool]:
        """Admit a call or raise; returns (generation, is_trial)."""
        event = None
        with self._lock:
            if self._state == CircuitBreakerState.CLOSED:
                return self._generation, False

            if self._state == CircuitBreakerState.OPEN:
                elapsed = self._clock() - self._opened_at
                if elapsed < self.config.break_duration:
                    retry_after = self.config.break_duration - elapsed
                    logger.warning("Circuit breaker open, call rejected", name=self.name, retry_after=retry_after)
                    raise CircuitBreakerOpenError(self.name, retry_after=retry_after)

                self._transition(CircuitBreakerState.HALF_OPEN)
                event = self._event()
                logger.info("Circuit breaker half-open", name=self.name)

            elif self._trial_in_flight:
                logger.warning("Circuit breaker half-open trial in flight, call rejected", name=self.name)
                raise CircuitBreakerOpenError(self.name)

            self._trial_in_flight = True
            generation = self._generation

        if event is not None:
            invoke_hook(self.config.on_half_opened, "on_half_opened", event)
        return generation, True

    def _release_trial(self, generation: int) -> None:
        """Free the trial slot after a cancelled trial without a transition."""
        with self._lock:
            if generation == self._generation and self._state == CircuitBreakerState.HALF_OPEN:
                self._trial_in_flight = False

    def _record_outcome(self, generation: int, is_trial: bool, error: Optional[BaseException]) -> None:
        """Record a call outcome and apply any resulting transition."""
        failed = error is not None and is_circuit_failure(error)
        hook, hook_name = None, ""
        event = None

        with self._lock:
            if generation != self._generation:
                return

            if is_trial:
                self._trial_in_flight = False
                if failed:
                    self._open(error)
                    hook, hook_name = self.config.on_opened, "on_opened"
                else:
                    self._transition(CircuitBreakerState.CLOSED)
                    logger.info("Circuit breaker closed", name=self.name)
                    hook, hook_name = self.config.on_closed, "on_closed"
                event = self._event(error if failed else None)

            elif self._state == CircuitBreakerState.CLOSED:
                now = self._clock()
                if now - self._window_start > self.config.sampling_duration:
                    self._reset_window(now)

                if failed:
                    self._failure_count += 1
                else:
                    self._success_count += 1

                if failed and self._should_open():
                    # Counts are reported as they stood when the ratio tripped
                    failure_count, success_count = self._failure_count, self._success_count
                    self._open(error)
                    event = CircuitBreakerEvent(
                        name=self.name,
                        state=self._state,
                        failure_count=failure_count,
                        success_count=success_count,
                        error=error
                    )
                    hook, hook_name = self.config.on_opened, "on_opened"

        if event is not None:
            invoke_hook(hook, hook_name, event)

    def _should_open(self) -> bool:
        total = self._failure_count + self._success_count
        if total < self.config.minimum_throughput:
            return False
        return self._failure_count / total >= self.config.failure_ratio

    def _open(self, error: Optional[BaseException]) -> None:
        failure_count = self._failure_count
        self._transition(CircuitBreakerState.OPEN)
        self._opened_at = self._clock()
        logger.warning(
            "Circuit breaker opened",
            name=self.name,
            failure_count=failure_count,
            break_duration=self.config.break_duration,
            error=str(error) if error else None
        )

    def _transition(self, state: CircuitBreakerState) -> None:
        self._state = state
        self._generation += 1
        self._trial_in_flight = False
        if state == CircuitBreakerState.CLOSED:
            self._opened_at = None
            self._reset_window(self._clock())
        elif state == CircuitBreakerState.OPEN:
            self._success_count = 0
            self._failure_count = 0

    def _reset_window(self, now: float) -> None:
        self._window_start = now
        self._success_count = 0
        self._failure_count = 0

    def _event(self, error: Optional[BaseException] = None) -> CircuitBreakerEvent:
        return CircuitBreakerEvent(
            name=self.name,
            state=self._state,
            failure_count=self._failure_count,
            success_count=self._success_count,
            error=error
        )

    def get_status(self) -> Dict[str, Any]:
        """Get current circuit breaker status."""
        with self._lock:
            return {
                "name": self.name,
                "state": self._state.value,
                "failure_count": self._failure_count,
                "success_count": self._success_count,
                "window_start": self._window_start,
                "opened_at": self._opened_at,
                "trial_in_flight": self._trial_in_flight,
            }
