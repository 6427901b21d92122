"""
osu! API Gateway - Anti-Corruption Layer for Players Feature.

Translates osu! API semantics (string-typed JSON, ``pp_rank``, empty list
for unknown users) into the players feature's own language so the sync
worker only deals with ``PlayerRankSnapshot``.
"""

from __future__ import annotations

from typing import Optional, TYPE_CHECKING

import structlog

from app.core.enums import Ruleset
from app.core.osu_api.errors import NotFoundError
from .schemas import PlayerRankSnapshot
from .transformers import osu_user_to_snapshot

if TYPE_CHECKING:
    from app.core.osu_api.client import OsuAPIClient

logger = structlog.get_logger(__name__)


class OsuPlayerGateway:
    """Anti-Corruption Layer for osu! API player lookups."""

    def __init__(self, osu_api_client: "OsuAPIClient"):
        """
        Initialize gateway with osu! API client.

        :param osu_api_client: Low-level osu! API client
        """
        self._client = osu_api_client

    async def fetch_rank(
        self, osu_id: int, mode: Ruleset
    ) -> Optional[PlayerRankSnapshot]:
        """Fetch a player's current rank, username and country for one mode.

        :param osu_id: osu! user id
        :param mode: Game mode
        :returns: Snapshot, or None when osu! does not return the user
                  (typically a restricted account)
        :raises OsuAPIError: For transport or server failures
        """
        try:
            user = await self._client.get_user(osu_id, mode)
        except NotFoundError:
            return None

        if user is None:
            return None

        logger.debug(
            "Fetched osu! rank",
            osu_id=osu_id,
            mode=int(mode),
            rank=user.rank,
        )
        return osu_user_to_snapshot(user)
