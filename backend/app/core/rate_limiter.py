"""Rate limiting for the application.

Two concerns live here:

- ``limiter``: slowapi limiter guarding inbound HTTP endpoints per client IP.
- ``FixedWindowRateLimiter``: outbound request budget for external APIs
  (a fixed quota per window; callers wait for the reset once exhausted).
"""

from datetime import datetime, timedelta
from typing import Optional

import structlog
from slowapi import Limiter
from slowapi.util import get_remote_address

from .clock import Clock, system_clock

logger = structlog.get_logger(__name__)

# key_func determines the key for rate limiting (by default, uses client IP)
limiter = Limiter(key_func=get_remote_address)


class FixedWindowRateLimiter:
    """Fixed quota of requests per window.

    The window opens with the first recorded request and resets once its
    end has passed. Not safe for concurrent use on its own; owners that
    share it across tasks guard it with their own lock.
    """

    def __init__(
        self,
        limit: int,
        window: timedelta,
        clock: Optional[Clock] = None,
        name: str = "external-api",
    ):
        """Initialize the limiter.

        :param limit: Requests allowed per window
        :param window: Window length
        :param clock: Time source (system clock by default)
        :param name: Label used in log lines
        """
        if limit < 1:
            raise ValueError("limit must be positive")
        self.limit = limit
        self.window = window
        self.clock = clock or system_clock
        self.name = name
        self.remaining = limit
        self.reset_at: Optional[datetime] = None

    def _roll_window(self) -> None:
        if self.reset_at is not None and self.clock.now() >= self.reset_at:
            self.remaining = self.limit
            self.reset_at = None

    def is_limited(self) -> bool:
        """Whether the current window's budget is used up."""
        self._roll_window()
        return self.remaining <= 0

    def record(self, count: int = 1) -> None:
        """Count ``count`` requests against the current window."""
        self._roll_window()
        if self.reset_at is None:
            self.reset_at = self.clock.now() + self.window
        self.remaining -= count

    def seconds_until_reset(self) -> float:
        """Seconds until the budget refills, never negative."""
        if self.reset_at is None:
            return 0.0
        return max((self.reset_at - self.clock.now()).total_seconds(), 0.0)

    async def wait_if_limited(self, stop_event=None) -> bool:
        """Sleep until the window resets when the budget is exhausted.

        :param stop_event: Optional ``asyncio.Event`` that aborts the wait
        :returns: True if the wait was interrupted by ``stop_event``
        """
        if not self.is_limited():
            return False

        delay = self.seconds_until_reset()
        logger.info(
            "Rate limit reached, waiting for window reset",
            limiter=self.name,
            limit=self.limit,
            wait_seconds=round(delay, 3),
        )
        interrupted = await self.clock.sleep(delay, stop_event)
        self._roll_window()
        return interrupted
