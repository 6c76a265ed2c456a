"""
HTTP transport infrastructure.

Client configuration, the pooled client factory, the JSON codec and the
request execution core.
"""

from .config import (
    HttpClientConfig,
    JsonSerializerSettings,
    load_http_client_config,
    load_retry_config,
    load_circuit_breaker_config
)
from .client_factory import HttpxClientFactory
from .serialization import JsonSerializer
from .executor import HttpRequestExecutor, resolve_method

__all__ = [
    "HttpClientConfig",
    "JsonSerializerSettings",
    "load_http_client_config",
    "load_retry_config",
    "load_circuit_breaker_config",
    "HttpxClientFactory",
    "JsonSerializer",
    "HttpRequestExecutor",
    "resolve_method"
]
