"""
Custom exceptions for resilient-http.

This module defines the error taxonomy used throughout the library. Every
exception carries an explicit ``kind`` so the resilience layer can decide
whether a failure is retryable, circuit-tripping or fatal without matching
on the exception hierarchy.
"""

import asyncio
from enum import Enum
from typing import Optional, Dict, Any, Iterable

import httpx


class ErrorKind(str, Enum):
    """Classification of failures seen by the resilience pipeline."""
    INVALID_ARGUMENT = "invalid_argument"
    UNSUPPORTED_METHOD = "unsupported_method"
    TRANSPORT = "transport"
    CIRCUIT_OPEN = "circuit_open"
    DESERIALIZATION = "deserialization"
    CANCELLED = "cancelled"
    UNEXPECTED = "unexpected"


class HttpClientError(Exception):
    """Base exception for all resilient-http errors."""

    kind: ErrorKind = ErrorKind.UNEXPECTED

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None, error_code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.error_code = error_code


class InvalidArgumentError(HttpClientError):
    """Raised when a caller passes a missing or invalid argument."""

    kind = ErrorKind.INVALID_ARGUMENT

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None, **kwargs):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value


class ConfigurationError(InvalidArgumentError):
    """Raised when there are configuration or setup issues."""
    pass


class PreconditionError(InvalidArgumentError):
    """Raised when a function precondition is violated."""
    pass


class UnsupportedMethodError(HttpClientError):
    """Raised when a request uses an HTTP method the executor cannot send."""

    kind = ErrorKind.UNSUPPORTED_METHOD

    def __init__(self, method: str, **kwargs):
        super().__init__(f"Unsupported HTTP method: {method}", **kwargs)
        self.method = method


class TransportError(HttpClientError):
    """Raised when the wire call fails or returns a non-success status."""

    kind = ErrorKind.TRANSPORT

    def __init__(
        self,
        message: str,
        method: Optional[str] = None,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        **kwargs
    ):
        if method and url:
            message = f"{message} ({method} {url})"
        super().__init__(message, **kwargs)
        self.method = method
        self.url = url
        self.status_code = status_code
        self.response_body = response_body


class CircuitBreakerOpenError(HttpClientError):
    """Raised when a circuit breaker rejects a call without attempting it."""

    kind = ErrorKind.CIRCUIT_OPEN

    def __init__(self, service: str, retry_after: Optional[float] = None, **kwargs):
        super().__init__(f"Circuit breaker open for service: {service}", **kwargs)
        self.service = service
        self.retry_after = retry_after


class DeserializationError(HttpClientError):
    """Raised when a response body cannot be decoded into the expected type."""

    kind = ErrorKind.DESERIALIZATION

    def __init__(
        self,
        message: str,
        target_type: Any = None,
        method: Optional[str] = None,
        url: Optional[str] = None,
        **kwargs
    ):
        if method and url:
            message = f"{message} ({method} {url})"
        super().__init__(message, **kwargs)
        self.target_type = target_type
        self.method = method
        self.url = url


NEVER_RETRYABLE = frozenset({ErrorKind.CIRCUIT_OPEN, ErrorKind.CANCELLED})

DEFAULT_RETRYABLE_KINDS = frozenset({ErrorKind.TRANSPORT, ErrorKind.DESERIALIZATION})


def classify_error(exception: BaseException) -> ErrorKind:
    """Map an exception onto its ErrorKind."""
    if isinstance(exception, HttpClientError):
        return exception.kind
    if isinstance(exception, asyncio.CancelledError):
        return ErrorKind.CANCELLED
    if isinstance(exception, httpx.HTTPError):
        return ErrorKind.TRANSPORT
    return ErrorKind.UNEXPECTED


def is_retryable_error(
    exception: BaseException,
    retryable_kinds: Iterable[ErrorKind] = DEFAULT_RETRYABLE_KINDS
) -> bool:
    """Determine if an error may be retried under the given kinds."""
    kind = classify_error(exception)
    if kind in NEVER_RETRYABLE:
        return False
    return kind in frozenset(retryable_kinds)


def is_circuit_failure(exception: BaseException) -> bool:
    """Determine if an error counts as a failure for the circuit breaker."""
    return classify_error(exception) == ErrorKind.TRANSPORT


def should_log_error(exception: BaseException) -> bool:
    """Determine if an error should be logged at error level."""
    # Caller mistakes and deliberate load shedding are expected conditions
    low_priority_kinds = (
        ErrorKind.INVALID_ARGUMENT,
        ErrorKind.UNSUPPORTED_METHOD,
        ErrorKind.CIRCUIT_OPEN,
        ErrorKind.CANCELLED,
    )

    return classify_error(exception) not in low_priority_kinds
