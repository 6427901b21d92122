"""Player service for read-only player directory operations.

Player rows are written only by the background sync workers; this service
exposes lookups and the osu! id ↔ internal id mapping to request handlers.
"""

from typing import List

import structlog

from app.core.decorators import service_error_handler
from app.core.exceptions import NotFoundError
from .repository import PlayerRepositoryInterface
from .schemas import PlayerResponse
from .transformers import player_orm_to_response

logger = structlog.get_logger(__name__)


class PlayerService:
    """Service for player lookups (Thin Orchestration Layer)."""

    def __init__(self, repository: PlayerRepositoryInterface):
        """Initialize player service.

        :param repository: Player repository
        """
        self.repository = repository

    @service_error_handler("PlayerService")
    async def get_all(self) -> List[PlayerResponse]:
        """Get every player."""
        players = await self.repository.get_all()
        return [player_orm_to_response(player) for player in players]

    @service_error_handler("PlayerService")
    async def get_by_osu_id(self, osu_id: int) -> PlayerResponse:
        """Get a player by osu! user id.

        :raises NotFoundError: If no player has this osu! id
        """
        player = await self.repository.get_by_osu_id(osu_id)
        if player is None:
            raise NotFoundError(
                message=f"No player with osu! id {osu_id}",
                service="PlayerService",
                operation="get_by_osu_id",
                context={"osu_id": osu_id},
            )
        return player_orm_to_response(player)

    @service_error_handler("PlayerService")
    async def get_id_by_osu_id(self, osu_id: int) -> int:
        """Map osu! user id to internal id.

        :raises NotFoundError: If no player has this osu! id
        """
        player_id = await self.repository.get_id_by_osu_id(osu_id)
        if player_id is None:
            raise NotFoundError(
                message=f"No player with osu! id {osu_id}",
                service="PlayerService",
                operation="get_id_by_osu_id",
            )
        return player_id

    @service_error_handler("PlayerService")
    async def get_osu_id_by_id(self, player_id: int) -> int:
        """Map internal id to osu! user id.

        :raises NotFoundError: If the id is unknown
        """
        osu_id = await self.repository.get_osu_id_by_id(player_id)
        if osu_id is None:
            raise NotFoundError(
                message=f"No player with id {player_id}",
                service="PlayerService",
                operation="get_osu_id_by_id",
            )
        return osu_id
