"""
Logging infrastructure.

Structlog configuration and sanitization of request data in log events.
"""

from .config import configure_logging
from .sanitization import LogSanitizer, StructlogSanitizer

__all__ = [
    "configure_logging",
    "LogSanitizer",
    "StructlogSanitizer"
]
