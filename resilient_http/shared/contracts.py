"""
Contract Programming helpers with preconditions.

This module provides the ``require`` decorator used to validate arguments
at public entry points.
"""

import functools
import inspect
from typing import Any, Callable, TypeVar, Union

import structlog

from resilient_http.shared.exceptions import PreconditionError

logger = structlog.get_logger(__name__)

F = TypeVar('F', bound=Callable[..., Any])


def require(condition: Union[bool, Callable[..., bool]], message: str = "") -> Callable[[F], F]:
    """
    Precondition decorator - validates input parameters.

    Works for plain and ``async`` functions; for coroutines the check runs
    when the coroutine is awaited.

    Args:
        condition: Boolean expression or callable that takes function arguments
        message: Custom error message for contract violation

    Returns:
        Decorated function with precondition checking

    Raises:
        PreconditionError: If precondition is not met
    """
    def decorator(func: F) -> F:
        sig = inspect.signature(func)

        def check(args, kwargs):
            bound_args = sig.bind(*args, **kwargs)
            bound_args.apply_defaults()

            if callable(condition):
                try:
                    result = condition(**bound_args.arguments)
                except Exception as e:
                    logger.error(
                        "Precondition evaluation failed",
                        function=func.__name__,
                        error=str(e)
                    )
                    raise PreconditionError(
                        f"Precondition evaluation error in {func.__name__}: {str(e)}"
                    ) from e
            else:
                result = condition

            if not result:
                error_msg = message or f"Precondition failed in {func.__name__}"
                logger.warning(
                    "Precondition violation",
                    function=func.__name__,
                    message=error_msg
                )
                raise PreconditionError(error_msg)

        if inspect.iscoroutinefunction(func):
            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                check(args, kwargs)
                return await func(*args, **kwargs)

            return async_wrapper

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            check(args, kwargs)
            return func(*args, **kwargs)

        return wrapper
    return decorator
