"""
Resilience policy store.

The store owns the active retry and circuit breaker configuration and the
pipeline built from them. It is an ordinary object created by the
application's composition root and handed to the request executor.
"""

import threading
import time
from typing import Any, Awaitable, Callable, Optional

import structlog

from resilient_http.shared.contracts import require
from resilient_http.infrastructure.resilience.circuit_breaker import CircuitBreakerConfig
from resilient_http.infrastructure.resilience.pipeline import ResiliencePipeline, build_pipeline
from resilient_http.infrastructure.resilience.retry import RetryConfig

logger = structlog.get_logger(__name__)


class PolicyStore:
    """Thread-safe holder of resilience configuration and the cached pipeline.

    Writing either configuration drops the cached pipeline; the next call to
    ``get_pipeline`` builds a new one, which starts with a closed breaker.
    Requests already running keep the pipeline they started with.
    """

    def __init__(
        self,
        retry_config: Optional[RetryConfig] = None,
        circuit_breaker_config: Optional[CircuitBreakerConfig] = None,
        name: str = "api",
        clock: Callable[[], float] = time.monotonic,
        sleep: Optional[Callable[[float], Awaitable[Any]]] = None
    ):
        """
        Initialize policy store.

        Args:
            retry_config: Initial retry configuration (defaults if omitted)
            circuit_breaker_config: Initial breaker configuration (defaults if omitted)
            name: Name given to the circuit breaker of built pipelines
            clock: Monotonic time source passed to circuit breakers
            sleep: Delay function passed to retry sequencers
        """
        self.name = name
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._retry_config = retry_config or RetryConfig()
        self._circuit_breaker_config = circuit_breaker_config or CircuitBreakerConfig()
        self._pipeline: Optional[ResiliencePipeline] = None

    @property
    def retry_config(self) -> RetryConfig:
        with self._lock:
            return self._retry_config

    @property
    def circuit_breaker_config(self) -> CircuitBreakerConfig:
        with self._lock:
            return self._circuit_breaker_config

    @require(lambda self, config: config is not None, "Retry configuration cannot be None")
    def configure_retry(self, config: RetryConfig) -> None:
        """Replace the retry configuration and invalidate the cached pipeline."""
        with self._lock:
            self._retry_config = config
            self._pipeline = None
        logger.info(
            "Retry policy configured",
            max_attempts=config.max_attempts,
            backoff_type=config.backoff_type.value,
            initial_delay=config.initial_delay
        )

    @require(lambda self, config: config is not None, "Circuit breaker configuration cannot be None")
    def configure_circuit_breaker(self, config: CircuitBreakerConfig) -> None:
        """Replace the circuit breaker configuration and invalidate the cached pipeline."""
        with self._lock:
            self._circuit_breaker_config = config
            self._pipeline = None
        logger.info(
            "Circuit breaker policy configured",
            failure_ratio=config.failure_ratio,
            sampling_duration=config.sampling_duration,
            minimum_throughput=config.minimum_throughput,
            break_duration=config.break_duration
        )

    def get_pipeline(self) -> ResiliencePipeline:
        """Return the cached pipeline, building it on first use."""
        pipeline = self._pipeline
        if pipeline is not None:
            return pipeline

        with self._lock:
            if self._pipeline is None:
                self._pipeline = build_pipeline(
                    self._retry_config,
                    self._circuit_breaker_config,
                    name=self.name,
                    clock=self._clock,
                    sleep=self._sleep
                )
                logger.debug("Resilience pipeline built", name=self.name)
            return self._pipeline

    @property
    def api_pipeline(self) -> ResiliencePipeline:
        """The current pipeline, rebuilt if configuration changed."""
        return self.get_pipeline()
