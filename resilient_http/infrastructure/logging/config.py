"""
Structured logging configuration.

Configures structlog once for the process. Level and output format come
from the arguments or from the environment:

- RESILIENT_HTTP_LOG_LEVEL: DEBUG | INFO | WARNING | ERROR (default: INFO)
- RESILIENT_HTTP_LOG_FORMAT: json | console (default: console)
"""

import logging
import os
import sys
from typing import List, Optional

import structlog

from resilient_http.infrastructure.logging.sanitization import StructlogSanitizer

_configured = False


def configure_logging(
    level: Optional[str] = None,
    json_format: Optional[bool] = None,
    force: bool = False
) -> None:
    """
    Configure structlog with request-data sanitization.

    Subsequent calls are no-ops unless ``force`` is set.

    Args:
        level: Log level name (overrides RESILIENT_HTTP_LOG_LEVEL)
        json_format: Render JSON lines instead of console output
        force: Reconfigure even if already configured
    """
    global _configured

    if _configured and not force:
        return

    log_level = (level or os.getenv("RESILIENT_HTTP_LOG_LEVEL", "INFO")).upper()
    if json_format is None:
        json_format = os.getenv("RESILIENT_HTTP_LOG_FORMAT", "console").lower() == "json"

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, log_level, logging.INFO),
    )

    processors: List = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        StructlogSanitizer(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    _configured = True
