"""
Resilience patterns for outbound requests.

This module provides the retry sequencer, the failure-ratio circuit breaker,
the pipeline that composes them and the policy store that caches it.
"""

from .retry import (
    BackoffType,
    RetryConfig,
    RetrySequencer
)
from .circuit_breaker import (
    CircuitBreakerState,
    CircuitBreakerEvent,
    CircuitBreakerConfig,
    CircuitBreaker
)
from .pipeline import ResiliencePipeline, build_pipeline
from .policy_store import PolicyStore

__all__ = [
    "BackoffType",
    "RetryConfig",
    "RetrySequencer",
    "CircuitBreakerState",
    "CircuitBreakerEvent",
    "CircuitBreakerConfig",
    "CircuitBreaker",
    "ResiliencePipeline",
    "build_pipeline",
    "PolicyStore"
]
