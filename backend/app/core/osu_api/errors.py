"""Custom error classes for the osu! API client."""

from typing import Optional, Dict, Any


class OsuAPIError(Exception):
    """Base exception for osu! API errors with status code tracking."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_data: Optional[Dict[str, Any]] = None,
        retry_after: Optional[float] = None,
    ) -> None:
        """
        Initialize OsuAPIError.

        Args:
            message: Error message
            status_code: HTTP status code (401, 404, 429, 503, etc.)
            response_data: Raw response data from API
            retry_after: Seconds to wait before retry (for 429 errors)
        """
        super().__init__(message)
        self.status_code: Optional[int] = status_code
        self.response_data: Dict[str, Any] = response_data or {}
        self.retry_after: Optional[float] = retry_after
        self.message: str = message

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.status_code == 429 and self.retry_after:
            return f"Rate Limit Error {self.status_code}: {self.message} (Retry after: {self.retry_after}s)"
        if self.status_code:
            return f"osu! API Error {self.status_code}: {self.message}"
        return f"osu! API Error: {self.message}"


class RateLimitError(OsuAPIError):
    """Rate limit error (429) - can be retried after cooldown."""

    pass


class AuthenticationError(OsuAPIError):
    """Authentication error (401) - missing or invalid API key."""

    pass


class NotFoundError(OsuAPIError):
    """Not found error (404) - resource doesn't exist."""

    pass


class ServiceUnavailableError(OsuAPIError):
    """Service unavailable (5xx) after exhausting retries."""

    pass


class RequestCancelledError(OsuAPIError):
    """A wait inside the client was interrupted by shutdown."""

    pass
