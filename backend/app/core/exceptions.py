"""
Service layer custom exceptions.

Every error a service raises derives from ``ServiceException`` so the HTTP
layer can translate it into a response with a single handler, and so jobs
can log a consistent ``service``/``operation`` context.
"""

from typing import Any, Dict, Optional


class ServiceException(Exception):
    """Base exception for all service layer errors."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        service: Optional[str] = None,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.message = message
        self.service = service
        self.operation = operation
        self.context = context or {}
        self.original_error = original_error

    def __str__(self) -> str:
        if self.service and self.operation:
            return f"[{self.service}.{self.operation}] {self.message}"
        return self.message


class PersistenceError(ServiceException):
    """A write could not be committed; the transaction was rolled back.

    Callers may retry the whole operation since nothing was persisted.
    """

    retryable = True

    def __init__(
        self,
        message: str,
        service: Optional[str] = None,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(
            message=f"Database error: {message}",
            service=service,
            operation=operation,
            context=context,
            original_error=original_error,
        )


class ValidationError(ServiceException):
    """Exception raised for input validation errors in services."""

    status_code = 400

    def __init__(
        self,
        message: str,
        service: Optional[str] = None,
        operation: Optional[str] = None,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        validation_context = context or {}
        if field:
            validation_context["field"] = field
        if value is not None:
            validation_context["value"] = str(value)

        super().__init__(
            message=message,
            service=service,
            operation=operation,
            context=validation_context,
        )


class DuplicateTournamentError(ValidationError):
    """An unverified submission named a tournament that already exists for its mode."""

    def __init__(self, name: str, mode: int, service: Optional[str] = None):
        super().__init__(
            message=f"Tournament {name} already exists for this mode",
            service=service,
            operation="submit_batch",
            context={"tournament_name": name, "mode": mode},
        )
        self.name = name
        self.mode = mode


class InvalidStateTransitionError(ValidationError):
    """A verification status change the state machine does not allow."""

    def __init__(
        self,
        current: str,
        requested: str,
        service: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        transition_context = context or {}
        transition_context.update({"current": current, "requested": requested})
        super().__init__(
            message=f"Cannot transition match from {current} to {requested}",
            service=service,
            operation="update_verification_status",
            context=transition_context,
        )


class NotFoundError(ServiceException):
    """The requested record does not exist."""

    status_code = 404

    def __init__(
        self,
        message: str,
        service: Optional[str] = None,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message, service=service, operation=operation, context=context
        )


class AuthorizationError(ServiceException):
    """The caller is missing credentials (401) or a required role (403)."""

    def __init__(
        self,
        message: str,
        status_code: int = 403,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, service="Auth", context=context)
        self.status_code = status_code


class ExternalServiceError(ServiceException):
    """Exception raised for external API service errors (osu! API, osu!track)."""

    status_code = 502

    def __init__(
        self,
        message: str,
        service: Optional[str] = None,
        operation: Optional[str] = None,
        external_service: Optional[str] = None,
        status_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None,
    ):
        external_context = context or {}
        if external_service:
            external_context["external_service"] = external_service
        if status_code:
            external_context["status_code"] = status_code

        super().__init__(
            message=f"External service error: {message}",
            service=service,
            operation=operation,
            context=external_context,
            original_error=original_error,
        )
