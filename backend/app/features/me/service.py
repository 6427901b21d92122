"""Service backing the ``/me`` endpoints."""

from datetime import datetime
from typing import Optional

import structlog

from app.core.decorators import service_error_handler
from app.core.enums import Ruleset
from app.core.exceptions import NotFoundError, ValidationError
from app.features.auth.repository import UserRepositoryInterface
from app.features.auth.schemas import AuthenticatedUser
from app.features.matches.repository import MatchRepositoryInterface
from app.features.players.repository import PlayerRepositoryInterface
from app.features.ratings.repository import RatingRepositoryInterface
from app.features.ratings.schemas import RatingHistoryResponse, RatingResponse
from .schemas import MeResponse, PlayerStatsResponse

logger = structlog.get_logger(__name__)


class MeService:
    """Read-only views over the caller's own user, player and ratings."""

    def __init__(
        self,
        user_repository: UserRepositoryInterface,
        player_repository: PlayerRepositoryInterface,
        rating_repository: RatingRepositoryInterface,
        match_repository: MatchRepositoryInterface,
    ):
        self.user_repository = user_repository
        self.player_repository = player_repository
        self.rating_repository = rating_repository
        self.match_repository = match_repository

    @service_error_handler("MeService")
    async def get_me(self, caller: AuthenticatedUser) -> MeResponse:
        """Get the caller's user and linked player.

        :raises ValidationError: If the token carries no player
        :raises NotFoundError: If no user or player row exists for it
        """
        player_id = self._require_player_id(caller, "get_me")

        user = await self.user_repository.get_for_player(player_id)
        player = await self.player_repository.get_by_id(player_id)
        if user is None or player is None:
            raise NotFoundError(
                message="User not found",
                service="MeService",
                operation="get_me",
                context={"player_id": player_id},
            )

        return MeResponse(
            id=player.id,
            user_id=user.id,
            osu_id=player.osu_id,
            osu_country=player.country,
            username=player.username,
            roles=[role.value for role in sorted(user.role_set, key=lambda r: r.value)],
        )

    @service_error_handler("MeService")
    async def get_stats(
        self,
        caller: AuthenticatedUser,
        mode: Ruleset = Ruleset.STANDARD,
        date_min: Optional[datetime] = None,
        date_max: Optional[datetime] = None,
    ) -> PlayerStatsResponse:
        """Summarize the caller's rating in ``mode`` within a date window.

        :raises ValidationError: If the token carries no player
        """
        player_id = self._require_player_id(caller, "get_stats")
        if date_min is not None and date_max is not None and date_min > date_max:
            raise ValidationError(
                "date_min must not be after date_max",
                service="MeService",
                operation="get_stats",
                field="date_min",
            )

        rating = await self.rating_repository.get(player_id, int(mode))
        history = await self.rating_repository.get_history(
            player_id, int(mode), date_min, date_max
        )
        match_count = await self.match_repository.count_player_matches(
            player_id, int(mode)
        )

        return PlayerStatsResponse(
            player_id=player_id,
            mode=mode,
            date_min=date_min,
            date_max=date_max,
            rating=RatingResponse.model_validate(rating) if rating else None,
            history=[RatingHistoryResponse.model_validate(row) for row in history],
            match_count=match_count,
        )

    @staticmethod
    def _require_player_id(caller: AuthenticatedUser, operation: str) -> int:
        if caller.player_id is None:
            raise ValidationError(
                "Login is not linked to a player",
                service="MeService",
                operation=operation,
            )
        return caller.player_id
