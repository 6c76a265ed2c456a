"""
Logging sanitization for outbound request data.

Requests carry credentials in headers, URLs and query strings. This module
redacts them before log events are rendered, so failures can be logged
with full request context without leaking secrets.
"""

import re
from typing import Any, Dict, List, Optional


class LogSanitizer:
    """Sanitizes sensitive data from log output."""

    # Sensitive field patterns (case-insensitive substring match)
    SENSITIVE_FIELD_PATTERNS = {
        'password', 'passwd', 'pwd', 'secret', 'token', 'api_key', 'apikey',
        'authorization', 'auth', 'bearer', 'cookie', 'private_key',
        'access_token', 'refresh_token', 'session_id', 'session_key',
        'x-api-key', 'headers',
    }

    # Sensitive value patterns (regex)
    SENSITIVE_VALUE_PATTERNS = [
        # Bearer / Basic credentials
        r'\b(?:Bearer|Basic)\s+[A-Za-z0-9\-._~+/]+=*',
        # JWT tokens (basic pattern)
        r'\beyJ[A-Za-z0-9-_]+\.[A-Za-z0-9-_]+\.[A-Za-z0-9-_]*\b',
        # API keys (long opaque strings)
        r'\b[A-Za-z0-9]{32,}\b',
    ]

    # Query parameters whose values are always redacted
    SENSITIVE_QUERY_PARAMS = ['token', 'key', 'secret', 'password', 'auth', 'api_key', 'access_token', 'signature']

    # Replacement text for sanitized values
    REPLACEMENT_TEXT = "***REDACTED***"

    @classmethod
    def sanitize_dict(cls, data: Dict[str, Any], max_depth: int = 10) -> Dict[str, Any]:
        """
        Recursively sanitize a dictionary, removing sensitive data.

        Args:
            data: Dictionary to sanitize
            max_depth: Maximum recursion depth to prevent infinite loops

        Returns:
            Sanitized dictionary with sensitive fields redacted
        """
        if max_depth <= 0:
            return {"error": "max_depth_reached"}

        if not isinstance(data, dict):
            return cls._sanitize_value(data)

        sanitized = {}

        for key, value in data.items():
            lowered_key = str(key).lower()

            if any(pattern in lowered_key for pattern in cls.SENSITIVE_FIELD_PATTERNS):
                sanitized[key] = cls.REPLACEMENT_TEXT
            elif isinstance(value, dict):
                sanitized[key] = cls.sanitize_dict(value, max_depth - 1)
            elif isinstance(value, list):
                sanitized[key] = cls._sanitize_list(value, max_depth - 1)
            else:
                sanitized[key] = cls._sanitize_value(value)

        return sanitized

    @classmethod
    def _sanitize_list(cls, data: List[Any], max_depth: int) -> List[Any]:
        """Sanitize a list of values."""
        if max_depth <= 0:
            return ["max_depth_reached"]

        sanitized = []
        for item in data:
            if isinstance(item, dict):
                sanitized.append(cls.sanitize_dict(item, max_depth - 1))
            elif isinstance(item, list):
                sanitized.append(cls._sanitize_list(item, max_depth - 1))
            else:
                sanitized.append(cls._sanitize_value(item))

        return sanitized

    @classmethod
    def _sanitize_value(cls, value: Any) -> Any:
        """Redact sensitive substrings inside a single value."""
        if not isinstance(value, str):
            return value
        return cls.sanitize_string(value)

    @classmethod
    def sanitize_string(cls, text: str) -> str:
        """
        Sanitize a string by replacing sensitive patterns.

        Args:
            text: String to sanitize

        Returns:
            Sanitized string with sensitive data redacted
        """
        if not isinstance(text, str):
            return str(text)

        sanitized = text
        for pattern in cls.SENSITIVE_VALUE_PATTERNS:
            sanitized = re.sub(pattern, cls.REPLACEMENT_TEXT, sanitized, flags=re.IGNORECASE)

        return sanitized

    @classmethod
    def sanitize_url(cls, url: str) -> str:
        """
        Sanitize URL by removing credentials and sensitive query parameters.

        Args:
            url: URL to sanitize

        Returns:
            Sanitized URL
        """
        if not isinstance(url, str):
            return str(url)

        # Remove credentials from URL (user:pass@host)
        sanitized = re.sub(r'://[^@/]+@', '://***:***@', url)

        for param in cls.SENSITIVE_QUERY_PARAMS:
            pattern = rf'([?&]){re.escape(param)}=[^&#]*'
            sanitized = re.sub(pattern, rf'\g<1>{param}={cls.REPLACEMENT_TEXT}', sanitized, flags=re.IGNORECASE)

        return sanitized


class StructlogSanitizer:
    """Structlog processor for sanitizing log events."""

    def __init__(self, sanitizer: Optional[LogSanitizer] = None):
        """Initialize with optional custom sanitizer."""
        self.sanitizer = sanitizer or LogSanitizer()

    def __call__(self, logger, method_name, event_dict):
        """
        Structlog processor that sanitizes event data.

        Args:
            logger: Logger instance
            method_name: Logging method name
            event_dict: Event dictionary to sanitize

        Returns:
            Sanitized event dictionary
        """
        sanitized_event = self.sanitizer.sanitize_dict(event_dict)

        if isinstance(sanitized_event.get('url'), str):
            sanitized_event['url'] = self.sanitizer.sanitize_url(sanitized_event['url'])

        for field in ('error', 'last_exception'):
            if isinstance(sanitized_event.get(field), str):
                sanitized_event[field] = self.sanitizer.sanitize_url(sanitized_event[field])

        return sanitized_event
