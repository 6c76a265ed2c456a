"""
Request execution core.

The executor turns an abstract request into an ``httpx.Request``, sends it
through the resilience pipeline (or directly when retry is disabled),
checks the status code and decodes the body into the request's response
type.
"""

from typing import Any, Optional, TypeVar

import httpx
import structlog

from resilient_http.core.domain.requests import BaseRequest
from resilient_http.core.domain.transport import ClientFactory
from resilient_http.shared.contracts import require
from resilient_http.shared.exceptions import (
    DeserializationError, TransportError, UnsupportedMethodError,
    classify_error, should_log_error
)
from resilient_http.shared.types import HttpMethod
from resilient_http.infrastructure.http.serialization import JSON_CONTENT_TYPE, JsonSerializer
from resilient_http.infrastructure.logging.sanitization import LogSanitizer
from resilient_http.infrastructure.resilience.policy_store import PolicyStore

logger = structlog.get_logger(__name__)

T = TypeVar('T')

_request_required = require(lambda self, request, **_: request is not None, "request cannot be None")


def resolve_method(method: str) -> HttpMethod:
    """Map a method string onto a supported HTTP method."""
    try:
        return HttpMethod((method or "").upper())
    except ValueError:
        raise UnsupportedMethodError(method) from None


class HttpRequestExecutor:
    """Executes typed requests with retry and circuit breaker protection."""

    def __init__(
        self,
        client_factory: ClientFactory,
        policy_store: PolicyStore,
        serializer: Optional[JsonSerializer] = None
    ):
        """
        Initialize request executor.

        Args:
            client_factory: Source of pooled transport clients
            policy_store: Holder of the cached resilience pipeline
            serializer: JSON codec (camelCase, case-insensitive by default)
        """
        self.client_factory = client_factory
        self.policy_store = policy_store
        self.serializer = serializer or JsonSerializer()

    @_request_required
    async def execute(
        self,
        request: BaseRequest[T],
        client_name: Optional[str] = None,
        enable_retry: bool = True
    ) -> Optional[T]:
        """
        Execute a request.

        Args:
            request: Request description
            client_name: Name of the transport client to use (default client if None)
            enable_retry: Route through the resilience pipeline; when False the
                call bypasses both retry and circuit breaker

        Returns:
            Response body decoded into ``request.response_type``

        Raises:
            PreconditionError: If request is None
            UnsupportedMethodError: If the method is not GET/POST/PUT/DELETE/PATCH
            TransportError: On connection failure or non-success status
            CircuitBreakerOpenError: If the circuit breaker rejected the call
            DeserializationError: If the response body cannot be decoded
        """
        try:
            client = self.client_factory.create_client(client_name)

            async def send() -> Optional[T]:
                return await self._execute_core(client, request)

            if enable_retry:
                return await self.policy_store.get_pipeline().execute(send)
            return await send()

        except Exception as e:
            log = logger.error if should_log_error(e) else logger.warning
            log(
                "API request failed",
                method=request.method,
                url=LogSanitizer.sanitize_url(request.get_request_api()),
                client=client_name,
                kind=classify_error(e).value,
                exception=type(e).__name__,
                error=str(e)
            )
            raise

    @_request_required
    async def execute_get(self, request: BaseRequest[T], client_name: Optional[str] = None, enable_retry: bool = True) -> Optional[T]:
        request.method = HttpMethod.GET.value
        return await self.execute(request, client_name, enable_retry)

    @_request_required
    async def execute_post(self, request: BaseRequest[T], client_name: Optional[str] = None, enable_retry: bool = True) -> Optional[T]:
        request.method = HttpMethod.POST.value
        return await self.execute(request, client_name, enable_retry)

    @_request_required
    async def execute_put(self, request: BaseRequest[T], client_name: Optional[str] = None, enable_retry: bool = True) -> Optional[T]:
        request.method = HttpMethod.PUT.value
        return await self.execute(request, client_name, enable_retry)

    @_request_required
    async def execute_delete(self, request: BaseRequest[T], client_name: Optional[str] = None, enable_retry: bool = True) -> Optional[T]:
        request.method = HttpMethod.DELETE.value
        return await self.execute(request, client_name, enable_retry)

    @_request_required
    async def execute_patch(self, request: BaseRequest[T], client_name: Optional[str] = None, enable_retry: bool = True) -> Optional[T]:
        request.method = HttpMethod.PATCH.value
        return await self.execute(request, client_name, enable_retry)

    def build_wire_request(self, client: httpx.AsyncClient, request: BaseRequest[Any]) -> httpx.Request:
        """Build the ``httpx.Request`` for a request description."""
        method = resolve_method(request.method)

        headers = dict(request.get_headers() or {})

        content = None
        if method.allows_body:
            body = request.get_body()
            if body is not None:
                content = self.serializer.serialize(body)
                # The payload's content type wins over a caller-supplied one
                headers = {k: v for k, v in headers.items() if k.lower() != "content-type"}
                headers["Content-Type"] = JSON_CONTENT_TYPE

        return client.build_request(
            method.value,
            request.get_request_api(),
            headers=headers,
            content=content
        )

    async def _execute_core(self, client: httpx.AsyncClient, request: BaseRequest[T]) -> Optional[T]:
        """Perform one wire call and decode the response."""
        wire_request = self.build_wire_request(client, request)
        method = wire_request.method
        url = str(wire_request.url)

        try:
            response = await client.send(wire_request)
        except httpx.HTTPError as e:
            logger.warning(
                "API request transport error",
                method=method,
                url=LogSanitizer.sanitize_url(url),
                exception=type(e).__name__,
                error=str(e)
            )
            raise TransportError(
                f"Transport error: {type(e).__name__}: {e}", method=method, url=url
            ) from e

        if not response.is_success:
            logger.warning(
                "API request returned error status",
                method=method,
                url=LogSanitizer.sanitize_url(url),
                status_code=response.status_code
            )
            raise TransportError(
                f"Response status code does not indicate success: {response.status_code} ({response.reason_phrase})",
                method=method,
                url=url,
                status_code=response.status_code,
                response_body=response.text
            )

        try:
            return self.serializer.deserialize(response.content, request.response_type)
        except DeserializationError as e:
            raise DeserializationError(
                e.message, target_type=e.target_type, method=method, url=url
            ) from e.__cause__
