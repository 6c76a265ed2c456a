"""
resilient-http: typed outbound HTTP requests with retry and circuit breaking.

Typical wiring::

    store = PolicyStore()
    executor = HttpRequestExecutor(HttpxClientFactory(default_config=config), store)
    user = await executor.execute_get(GetUserRequest(user_id))
"""

from resilient_http.core.domain import BaseRequest, ClientFactory
from resilient_http.shared.exceptions import (
    ErrorKind,
    HttpClientError,
    InvalidArgumentError,
    ConfigurationError,
    PreconditionError,
    UnsupportedMethodError,
    TransportError,
    CircuitBreakerOpenError,
    DeserializationError,
    classify_error
)
from resilient_http.shared.types import HttpMethod
from resilient_http.infrastructure.resilience import (
    BackoffType,
    RetryConfig,
    RetrySequencer,
    CircuitBreakerState,
    CircuitBreakerEvent,
    CircuitBreakerConfig,
    CircuitBreaker,
    ResiliencePipeline,
    build_pipeline,
    PolicyStore
)
from resilient_http.infrastructure.http import (
    HttpClientConfig,
    JsonSerializerSettings,
    HttpxClientFactory,
    JsonSerializer,
    HttpRequestExecutor
)

__version__ = "1.0.0"

__all__ = [
    "BaseRequest",
    "ClientFactory",
    "ErrorKind",
    "HttpClientError",
    "InvalidArgumentError",
    "ConfigurationError",
    "PreconditionError",
    "UnsupportedMethodError",
    "TransportError",
    "CircuitBreakerOpenError",
    "DeserializationError",
    "classify_error",
    "HttpMethod",
    "BackoffType",
    "RetryConfig",
    "RetrySequencer",
    "CircuitBreakerState",
    "CircuitBreakerEvent",
    "CircuitBreakerConfig",
    "CircuitBreaker",
    "ResiliencePipeline",
    "build_pipeline",
    "PolicyStore",
    "HttpClientConfig",
    "JsonSerializerSettings",
    "HttpxClientFactory",
    "JsonSerializer",
    "HttpRequestExecutor"
]
