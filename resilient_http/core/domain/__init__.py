"""
Domain contracts for outbound requests.
"""

from .requests import BaseRequest
from .transport import ClientFactory

__all__ = [
    "BaseRequest",
    "ClientFactory"
]
