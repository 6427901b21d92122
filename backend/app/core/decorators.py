"""
Service layer decorators for common functionality.

This module provides decorators for error handling and logging
in the service layer.
"""

import functools
import inspect
import structlog
from typing import Any, Callable, Dict, Type, ParamSpec, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from app.core.exceptions import (
    ExternalServiceError,
    PersistenceError,
    ServiceException,
    ValidationError,
)
from app.core.osu_api.errors import OsuAPIError

logger = structlog.get_logger(__name__)

P = ParamSpec("P")
R = TypeVar("R")


def _build_context(
    func: Callable, service_name: str, include_context: bool, args, kwargs
) -> Dict[str, Any]:
    context: Dict[str, Any] = {
        "service": service_name,
        "operation": func.__name__,
    }
    if not include_context:
        return context

    bound_args = inspect.signature(func).bind(*args, **kwargs)
    bound_args.apply_defaults()
    # Skip self and sessions; truncate values to keep log entries small
    for name, value in bound_args.arguments.items():
        if name not in ["self", "db", "session"]:
            context[name] = str(value)[:200] if value is not None else None
    return context


def service_error_handler(
    service_name: str,
    include_context: bool = True,
    default_error_type: Type[ServiceException] = ServiceException,
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """
    Decorator for handling service method errors with structured logging.

    Service exceptions pass through after logging. Other failures are
    translated: ``ValueError`` into ``ValidationError``, SQLAlchemy errors
    into ``PersistenceError``, osu! API errors into ``ExternalServiceError``.

    :param service_name: Name of the service (e.g., "MatchesService")
    :param include_context: Whether to include method parameters in error context
    :param default_error_type: Exception type wrapping anything unrecognised
    :returns: Decorated coroutine function

    :example:
        @service_error_handler("MatchesService")
        async def get(self, match_id: int) -> MatchResponse:
            ...
    """

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        operation_name = func.__name__

        @functools.wraps(func)
        async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            context = _build_context(func, service_name, include_context, args, kwargs)
            error_context = context if include_context else {}

            try:
                logger.debug("Service method called", **context)
                result = await func(*args, **kwargs)
                logger.debug("Service method completed successfully", **context)
                return result

            except ServiceException as e:
                log = logger.warning if e.status_code < 500 else logger.error
                log(
                    "Service operation failed",
                    error_type=e.__class__.__name__,
                    error_message=str(e),
                    error_context=e.context,
                    **context,
                )
                raise

            except ValueError as e:
                logger.error(
                    "Validation error in service operation",
                    error_message=str(e),
                    **context,
                )
                raise ValidationError(
                    message=str(e),
                    service=service_name,
                    operation=operation_name,
                    context=error_context,
                ) from e

            except SQLAlchemyError as e:
                logger.error(
                    "Database error in service operation",
                    error_type=e.__class__.__name__,
                    error_message=str(e),
                    **context,
                )
                raise PersistenceError(
                    message=str(e),
                    service=service_name,
                    operation=operation_name,
                    context=error_context,
                    original_error=e,
                ) from e

            except (OsuAPIError, ConnectionError, TimeoutError) as e:
                logger.error(
                    "External service error",
                    error_type=type(e).__name__,
                    error_message=str(e),
                    **context,
                )
                raise ExternalServiceError(
                    message=str(e),
                    service=service_name,
                    operation=operation_name,
                    status_code=getattr(e, "status_code", None),
                    context=error_context,
                    original_error=e,
                ) from e

            except Exception as e:
                logger.error(
                    "Unexpected error in service operation",
                    error_type=e.__class__.__name__,
                    error_message=str(e),
                    **context,
                )
                raise default_error_type(
                    message=f"Unexpected error in {service_name}.{operation_name}: {e}",
                    service=service_name,
                    operation=operation_name,
                    context=error_context,
                    original_error=e,
                ) from e

        return async_wrapper  # type: ignore[return-value]

    return decorator
