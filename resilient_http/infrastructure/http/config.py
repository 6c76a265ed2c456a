"""
HTTP client configuration for resilient-http.

This module holds the transport client settings, the JSON codec settings
and the loaders that read client and resilience settings from the
environment.
"""

import os
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, TypeVar
from urllib.parse import urlparse

from resilient_http.shared.exceptions import ConfigurationError
from resilient_http.infrastructure.resilience.circuit_breaker import CircuitBreakerConfig
from resilient_http.infrastructure.resilience.retry import BackoffType, RetryConfig

ENV_PREFIX = "RESILIENT_HTTP_"

V = TypeVar('V')


class HttpClientConfig:
    """Transport client configuration with validation."""

    def __init__(
        self,
        base_url: str = "",
        timeout_seconds: float = 30.0,
        headers: Optional[Mapping[str, str]] = None,
        follow_redirects: bool = False
    ):
        self.base_url = self._validate_url(base_url)
        self.timeout_seconds = self._validate_positive(timeout_seconds, "timeout_seconds")
        self.headers = dict(headers or {})
        self.follow_redirects = follow_redirects

    @staticmethod
    def _validate_url(url: str) -> str:
        """Validate base URL format; an empty base URL is allowed."""
        if not url:
            return ""

        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https"):
            raise ConfigurationError(
                f"Base URL must use http or https, got: {url}", field="base_url", value=url
            )
        if not parsed.netloc:
            raise ConfigurationError(f"Base URL must include a host, got: {url}", field="base_url", value=url)

        return url

    @staticmethod
    def _validate_positive(value: float, name: str) -> float:
        """Validate that a value is a positive number."""
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
            raise ConfigurationError(f"{name} must be a positive number, got: {value}", field=name, value=value)
        return value

    def to_client_kwargs(self) -> Dict[str, Any]:
        """Convert config to httpx.AsyncClient kwargs."""
        kwargs: Dict[str, Any] = {
            "timeout": self.timeout_seconds,
            "headers": self.headers,
            "follow_redirects": self.follow_redirects,
        }
        if self.base_url:
            kwargs["base_url"] = self.base_url
        return kwargs


@dataclass(frozen=True)
class JsonSerializerSettings:
    """Settings for request body encoding and response decoding."""
    camel_case: bool = True  # emit camelCase keys for models and dataclasses
    case_insensitive: bool = True  # match response keys ignoring case and underscores
    ensure_ascii: bool = False


def _env(name: str, parse: Callable[[str], V], default: V) -> V:
    raw = os.getenv(f"{ENV_PREFIX}{name}")
    if raw is None or raw == "":
        return default
    try:
        return parse(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid value for {ENV_PREFIX}{name}: {raw!r}", field=name, value=raw
        ) from e


def _parse_bool(raw: str) -> bool:
    return raw.strip().lower() in ("1", "true", "yes", "on")


def load_http_client_config() -> HttpClientConfig:
    """Load the default transport client configuration from the environment."""
    return HttpClientConfig(
        base_url=_env("BASE_URL", str, ""),
        timeout_seconds=_env("TIMEOUT_SECONDS", float, 30.0),
        follow_redirects=_env("FOLLOW_REDIRECTS", _parse_bool, False),
    )


def load_retry_config() -> RetryConfig:
    """Load the retry configuration from the environment."""
    defaults = RetryConfig()
    return RetryConfig(
        max_attempts=_env("RETRY_MAX_ATTEMPTS", int, defaults.max_attempts),
        backoff_type=_env("RETRY_BACKOFF", lambda raw: BackoffType(raw.strip().lower()), defaults.backoff_type),
        initial_delay=_env("RETRY_INITIAL_DELAY", float, defaults.initial_delay),
        max_delay=_env("RETRY_MAX_DELAY", float, defaults.max_delay),
        jitter=_env("RETRY_JITTER", _parse_bool, defaults.jitter),
    )


def load_circuit_breaker_config() -> CircuitBreakerConfig:
    """Load the circuit breaker configuration from the environment."""
    defaults = CircuitBreakerConfig()
    return CircuitBreakerConfig(
        failure_ratio=_env("CB_FAILURE_RATIO", float, defaults.failure_ratio),
        sampling_duration=_env("CB_SAMPLING_DURATION", float, defaults.sampling_duration),
        minimum_throughput=_env("CB_MINIMUM_THROUGHPUT", int, defaults.minimum_throughput),
        break_duration=_env("CB_BREAK_DURATION", float, defaults.break_duration),
    )
