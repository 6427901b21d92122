"""osu! API HTTP client with rate limiting, retries and error handling."""

import asyncio
from datetime import timedelta
from typing import Any, Callable, Dict, Optional

import httpx
import structlog

from app.core.clock import Clock, system_clock
from app.core.config import get_global_settings
from app.core.enums import Ruleset
from app.core.rate_limiter import FixedWindowRateLimiter
from .errors import (
    OsuAPIError,
    RateLimitError,
    AuthenticationError,
    RequestCancelledError,
    NotFoundError,
    ServiceUnavailableError,
)
from .models import OsuUserDTO

logger = structlog.get_logger(__name__)


class OsuAPIClient:
    """Client for the osu! API ``get_user`` endpoint."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        rate_limiter: Optional[FixedWindowRateLimiter] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        request_callback: Optional[Callable[[str, int], None]] = None,
        max_retries: int = 3,
        clock: Optional[Clock] = None,
        stop_event: Optional[asyncio.Event] = None,
    ):
        """
        Initialize osu! API client.

        Args:
            api_key: osu! API key (uses config if None)
            base_url: API root (uses config if None)
            rate_limiter: Outbound request budget (built from config if None)
            transport: Optional httpx transport, used by tests
            request_callback: Optional callback for tracking API requests (metric_name, count)
            max_retries: Retries for 429 and 5xx responses
            clock: Time source for backoff waits (system clock if None)
            stop_event: Event that aborts backoff and rate-limit waits once set
        """
        settings = get_global_settings()
        self.clock = clock or system_clock
        self.stop_event = stop_event
        self.api_key = api_key if api_key is not None else settings.osu_api_key
        self.base_url = (base_url or settings.osu_api_base_url).rstrip("/")
        self.rate_limiter = rate_limiter or FixedWindowRateLimiter(
            limit=settings.osu_api_requests_per_minute,
            window=timedelta(minutes=1),
            clock=self.clock,
            name="osu-api",
        )
        self.request_callback = request_callback
        self.max_retries = max_retries
        self._transport = transport

        self.session: Optional[httpx.AsyncClient] = None
        self._session_lock = asyncio.Lock()

    async def __aenter__(self):
        """Async context manager entry."""
        await self.start_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()

    async def start_session(self) -> None:
        """Start the httpx session."""
        if self.session is None or self.session.is_closed:
            async with self._session_lock:
                if self.session is None or self.session.is_closed:
                    timeout = httpx.Timeout(
                        connect=5.0, read=25.0, write=10.0, pool=30.0
                    )
                    self.session = httpx.AsyncClient(
                        base_url=self.base_url,
                        headers={"User-Agent": "otr-backend/0.1"},
                        timeout=timeout,
                        transport=self._transport,
                    )
                    logger.info(
                        "osu! API client session started",
                        base_url=self.base_url,
                        api_key_configured=bool(self.api_key),
                    )

    async def close(self) -> None:
        """Close the httpx session."""
        if self.session and not self.session.is_closed:
            await self.session.aclose()
            logger.info("osu! API client session closed")

    def _raise_for_status(self, response: httpx.Response, attempt: int) -> bool:
        """Raise for terminal error statuses.

        :returns: True when the request should be retried
        """
        status = response.status_code
        if status == 401:
            raise AuthenticationError("Invalid API key", status_code=status)
        if status == 404:
            raise NotFoundError("Resource not found", status_code=status)

        if status == 429:
            retry_after = float(response.headers.get("Retry-After", 1))
            if attempt < self.max_retries:
                return True
            raise RateLimitError(
                "Rate limit exceeded", status_code=status, retry_after=retry_after
            )

        if status >= 500:
            if attempt < self.max_retries:
                return True
            raise ServiceUnavailableError(
                f"Server error {status}", status_code=status
            )

        if status >= 400:
            raise OsuAPIError(f"Unexpected status {status}", status_code=status)

        return False

    async def _make_request(self, path: str, params: Dict[str, Any]) -> Any:
        """
        Make a GET request with rate limiting and retry logic.

        Args:
            path: Endpoint path relative to the API root
            params: Query parameters (the API key is added here)

        Returns:
            Decoded JSON body

        Raises:
            OsuAPIError: For API errors
            RequestCancelledError: When ``stop_event`` interrupts a wait
        """
        await self.start_session()
        if self.session is None:
            raise OsuAPIError("Session not initialized")

        query = {"k": self.api_key, **params}
        last_error: Optional[Exception] = None

        for attempt in range(self.max_retries + 1):
            if await self.rate_limiter.wait_if_limited(self.stop_event):
                raise RequestCancelledError("Request cancelled during rate-limit wait")
            self.rate_limiter.record()
            try:
                response = await self.session.get(path, params=query)
            except httpx.RequestError as e:
                last_error = e
                if attempt < self.max_retries:
                    await self._backoff(2**attempt)
                continue

            if self.request_callback:
                self.request_callback("api_requests_made", 1)

            if self._raise_for_status(response, attempt):
                delay = float(response.headers.get("Retry-After", 2**attempt))
                logger.warning(
                    "Retrying osu! API request",
                    path=path,
                    status_code=response.status_code,
                    attempt=attempt + 1,
                    delay_seconds=delay,
                )
                await self._backoff(delay)
                continue

            return response.json()

        raise OsuAPIError(f"Request failed: {last_error}")

    async def _backoff(self, delay: float) -> None:
        if await self.clock.sleep(delay, self.stop_event):
            raise RequestCancelledError("Request cancelled during retry backoff")

    async def get_user(self, osu_id: int, ruleset: Ruleset) -> Optional[OsuUserDTO]:
        """Get a user's profile and rank for one mode.

        :param osu_id: osu! user id
        :param ruleset: Game mode to read the rank for
        :returns: The user, or None when the API returns no entry
                  (unknown or restricted account)
        """
        data = await self._make_request(
            "/get_user", {"u": osu_id, "m": int(ruleset), "type": "id"}
        )
        if not data:
            logger.debug("osu! user not returned", osu_id=osu_id, mode=int(ruleset))
            return None
        return OsuUserDTO.model_validate(data[0])
