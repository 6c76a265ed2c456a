"""
Resilience pipeline composition.

A pipeline is a retry sequencer wrapped around a circuit breaker: every
attempt made by the sequencer passes through the breaker, so rejections
from an open circuit reach the sequencer, which surfaces them at once.
"""

import time
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

from resilient_http.infrastructure.resilience.circuit_breaker import (
    CircuitBreaker, CircuitBreakerConfig
)
from resilient_http.infrastructure.resilience.retry import RetryConfig, RetrySequencer

T = TypeVar('T')


class ResiliencePipeline:
    """Retry (outer) and circuit breaker (inner) applied to one operation."""

    def __init__(self, retry: RetrySequencer, circuit_breaker: CircuitBreaker):
        self.retry = retry
        self.circuit_breaker = circuit_breaker

    async def execute(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Run ``operation`` with retry and circuit breaker protection."""
        return await self.retry.execute(lambda: self.circuit_breaker.call(operation))

    def get_status(self) -> Dict[str, Any]:
        """Get pipeline status including circuit breaker state."""
        config = self.retry.config
        return {
            "retry_config": {
                "max_attempts": config.max_attempts,
                "backoff_type": config.backoff_type.value,
                "initial_delay": config.initial_delay,
            },
            "circuit_breaker": self.circuit_breaker.get_status(),
        }


def build_pipeline(
    retry_config: RetryConfig,
    circuit_breaker_config: CircuitBreakerConfig,
    name: str = "api",
    clock: Optional[Callable[[], float]] = None,
    sleep: Optional[Callable[[float], Awaitable[Any]]] = None
) -> ResiliencePipeline:
    """Build a pipeline with a fresh, closed circuit breaker."""
    retry = RetrySequencer(retry_config, sleep=sleep) if sleep else RetrySequencer(retry_config)
    breaker = CircuitBreaker(circuit_breaker_config, name=name, clock=clock or time.monotonic)
    return ResiliencePipeline(retry, breaker)
