"""
osu! API client package.

Provides an HTTP client for the osu! API with outbound rate limiting,
retries and typed errors.
"""

from .client import OsuAPIClient
from .errors import (
    OsuAPIError,
    RateLimitError,
    AuthenticationError,
    NotFoundError,
    RequestCancelledError,
    ServiceUnavailableError,
)
from .models import OsuUserDTO

__all__ = [
    "OsuAPIClient",
    "OsuAPIError",
    "RateLimitError",
    "AuthenticationError",
    "NotFoundError",
    "ServiceUnavailableError",
    "RequestCancelledError",
    "OsuUserDTO",
]
