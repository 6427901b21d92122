"""osu!track HTTP client for historical rank snapshots."""

from datetime import datetime
from typing import List, Optional

import httpx
import structlog

from app.core.config import get_global_settings
from app.core.enums import Ruleset
from .models import OsuTrackHistoryStats, stats_history_adapter

logger = structlog.get_logger(__name__)


class OsuTrackClient:
    """Thin client for the osu!track ``stats_history`` endpoint.

    Request budgeting is left to the caller; the history worker owns the
    osu!track rate limit.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_global_settings()
        self.base_url = (base_url or settings.osu_track_base_url).rstrip("/")
        self._transport = transport
        self.session: Optional[httpx.AsyncClient] = None

    async def start_session(self) -> None:
        """Start the httpx session."""
        if self.session is None or self.session.is_closed:
            self.session = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(30.0, connect=5.0),
                transport=self._transport,
            )

    async def close(self) -> None:
        """Close the httpx session."""
        if self.session and not self.session.is_closed:
            await self.session.aclose()

    async def get_stats_history(
        self, osu_id: int, ruleset: Ruleset, start: datetime, end: datetime
    ) -> str:
        """Fetch raw stats history for a player between two dates.

        :param osu_id: osu! user id
        :param ruleset: Game mode
        :param start: Window start (date part only is sent)
        :param end: Window end (date part only is sent)
        :returns: Response body, or an empty string on a failed request
        """
        await self.start_session()
        params = {
            "user": osu_id,
            "mode": int(ruleset),
            "from": start.strftime("%Y-%m-%d"),
            "to": end.strftime("%Y-%m-%d"),
        }
        try:
            response = await self.session.get("/stats_history", params=params)
        except httpx.RequestError as e:
            logger.error(
                "osu!track request failed",
                osu_id=osu_id,
                mode=int(ruleset),
                error=str(e),
                error_type=type(e).__name__,
            )
            return ""

        if response.status_code != 200:
            logger.error(
                "Failed to fetch osu!track history",
                osu_id=osu_id,
                mode=int(ruleset),
                status_code=response.status_code,
            )
            return ""

        return response.text


def parse_stats_history(text: str) -> List[OsuTrackHistoryStats]:
    """Parse a ``stats_history`` body.

    :raises pydantic.ValidationError: When the body is not a valid history list
    """
    return stats_history_adapter.validate_json(text)
