"""
Telemetry hook invocation.

Hooks are plain synchronous callables supplied through the retry and
circuit breaker configurations. They run on the calling task, so slow
handlers must hand work off themselves.
"""

from typing import Any, Callable, Optional

import structlog

logger = structlog.get_logger(__name__)


def invoke_hook(hook: Optional[Callable[..., Any]], hook_name: str, *args: Any) -> None:
    """Call a telemetry hook; a failing hook never breaks the request."""
    if hook is None:
        return

    try:
        hook(*args)
    except Exception as e:
        logger.error(
            "Telemetry hook raised",
            hook=hook_name,
            exception=type(e).__name__,
            error=str(e)
        )
