"""
Type definitions for resilient-http.

This module contains the custom type definitions shared across layers.
"""

from enum import Enum


class HttpMethod(str, Enum):
    """HTTP methods the request executor can send."""
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"

    @property
    def allows_body(self) -> bool:
        """Whether a JSON payload is attached for this method."""
        return self not in (HttpMethod.GET, HttpMethod.DELETE)
