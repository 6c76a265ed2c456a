"""
Transport interfaces for resilient-http.

The executor never builds transport clients itself; it asks a client
factory for a pooled, reusable client.
"""

from abc import ABC, abstractmethod
from typing import Optional

import httpx


class ClientFactory(ABC):
    """Interface for obtaining reusable transport clients."""

    @abstractmethod
    def create_client(self, name: Optional[str] = None) -> httpx.AsyncClient:
        """Return the client registered under ``name`` (default client if None)."""
        pass

    @abstractmethod
    async def cleanup(self) -> None:
        """Close every client handed out by this factory."""
        pass
