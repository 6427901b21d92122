"""Time source used by background workers and rate limiters.

Workers never call ``datetime.now`` or ``asyncio.sleep`` directly; they go
through a ``Clock`` so interval and rate-limit behaviour can be driven by a
fake clock in tests.
"""

import asyncio
from datetime import datetime, timezone
from typing import Optional, Protocol


class Clock(Protocol):
    """Abstract time source."""

    def now(self) -> datetime:
        """Current time, timezone-aware UTC."""
        ...

    async def sleep(
        self, seconds: float, stop_event: Optional[asyncio.Event] = None
    ) -> bool:
        """Wait ``seconds`` or until ``stop_event`` is set.

        :returns: True if the wait was interrupted by the stop event
        """
        ...


class SystemClock:
    """Wall-clock implementation backed by the running event loop."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    async def sleep(
        self, seconds: float, stop_event: Optional[asyncio.Event] = None
    ) -> bool:
        delay = max(seconds, 0.0)
        if stop_event is None:
            await asyncio.sleep(delay)
            return False

        try:
            await asyncio.wait_for(stop_event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return False
        return True


system_clock = SystemClock()
