"""Error handling utilities for worker execution.

Provides a decorator to handle external API errors consistently across
workers, so a failing lookup skips one entity instead of ending the pass.

Error Handling Strategy:
- Authentication errors: Always re-raise (bad API key; nothing else will work)
- Rate limit errors (retries exhausted): Log and treat like any other failure
- General errors: Re-raise if critical=True, log and return None otherwise
- Shutdown interrupting a client wait: Log at info, no failure is reported
- Cancellation is never caught
"""

import inspect
from functools import wraps
from typing import Any, Callable, Optional, ParamSpec, TypeVar

import structlog

from app.core.osu_api.errors import (
    AuthenticationError,
    RateLimitError,
    RequestCancelledError,
)

logger = structlog.get_logger(__name__)

P = ParamSpec("P")
R = TypeVar("R")


def handle_external_errors(
    *,
    operation: str,
    critical: bool = True,
    log_context: Optional[Callable[..., dict[str, Any]]] = None,
):
    """Decorator to handle external API errors with consistent behavior.

    :param operation: Description of the operation (e.g., "fetch osu! rank").
    :param critical: If True, re-raise all exceptions. If False, log and return None.
    :param log_context: Optional function extracting context from args for logging.
                        Example: lambda self, player, mode: {"osu_id": player.osu_id}

    Usage example::

        @handle_external_errors(
            operation="fetch osu! rank",
            critical=False,
            log_context=lambda self, player, mode: {"osu_id": player.osu_id},
        )
        async def _fetch_rank(self, player, mode):
            ...
    """

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        if not inspect.iscoroutinefunction(func):
            raise TypeError("handle_external_errors only wraps coroutine functions")

        @wraps(func)
        async def async_wrapper(*args, **kwargs):
            context = _extract_log_context(log_context, args, kwargs, func.__name__)
            try:
                return await func(*args, **kwargs)
            except Exception as error:
                _handle_error(error, operation, critical, context)
                return None  # For non-critical errors that don't re-raise

        return async_wrapper

    return decorator


def _extract_log_context(
    log_context: Optional[Callable], args: tuple, kwargs: dict, func_name: str
) -> dict:
    """Extract logging context from function arguments."""
    if not log_context:
        return {}

    try:
        return log_context(*args, **kwargs)
    except Exception as e:
        logger.warning(
            "Failed to extract log context",
            error=str(e),
            function=func_name,
        )
        return {}


def _handle_error(
    error: Exception, operation: str, critical: bool, context: dict
) -> None:
    """Log ``error`` and re-raise it when it must stop the worker."""
    if isinstance(error, AuthenticationError):
        logger.error(
            f"Authentication failure during {operation} - worker cannot continue",
            error=str(error),
            error_type=type(error).__name__,
            **context,
        )
        raise error

    if isinstance(error, RequestCancelledError):
        logger.info(f"{operation} cancelled by shutdown", **context)
    elif isinstance(error, RateLimitError):
        logger.warning(
            f"Rate limit persisted during {operation}",
            retry_after=error.retry_after,
            **context,
        )
    else:
        logger.error(
            f"Failed to {operation}",
            error=str(error),
            error_type=type(error).__name__,
            **context,
        )

    if critical:
        raise error
