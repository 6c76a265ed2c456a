"""
Pooled httpx client factory.

Each named configuration maps to one long-lived ``httpx.AsyncClient``;
connection pooling happens inside httpx, so the factory only has to create
each client once and close them all on shutdown.
"""

import threading
from typing import Dict, Mapping, Optional

import httpx
import structlog

from resilient_http.core.domain.transport import ClientFactory
from resilient_http.infrastructure.http.config import HttpClientConfig

logger = structlog.get_logger(__name__)

DEFAULT_CLIENT_NAME = ""


class HttpxClientFactory(ClientFactory):
    """Creates and caches one ``httpx.AsyncClient`` per client name."""

    def __init__(
        self,
        configs: Optional[Mapping[str, HttpClientConfig]] = None,
        default_config: Optional[HttpClientConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize client factory.

        Args:
            configs: Named client configurations
            default_config: Configuration for the unnamed client and unknown names
            transport: Transport shared by all clients (mock transports in tests)
        """
        self._configs: Dict[str, HttpClientConfig] = dict(configs or {})
        self._default_config = default_config or HttpClientConfig()
        self._transport = transport
        self._clients: Dict[str, httpx.AsyncClient] = {}
        self._lock = threading.Lock()

    def create_client(self, name: Optional[str] = None) -> httpx.AsyncClient:
        """Return the cached client for ``name``, creating it on first use."""
        key = name or DEFAULT_CLIENT_NAME

        with self._lock:
            client = self._clients.get(key)
            if client is None or client.is_closed:
                config = self._configs.get(key, self._default_config)
                kwargs = config.to_client_kwargs()
                if self._transport is not None:
                    kwargs["transport"] = self._transport
                client = httpx.AsyncClient(**kwargs)
                self._clients[key] = client
                logger.debug("HTTP client created", client=key or "default", base_url=config.base_url)

        return client

    async def cleanup(self) -> None:
        """Close all clients."""
        with self._lock:
            clients = list(self._clients.items())
            self._clients.clear()

        for key, client in clients:
            await client.aclose()
            logger.debug("HTTP client closed", client=key or "default")
