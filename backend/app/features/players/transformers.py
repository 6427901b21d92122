"""Transformers for converting between layers in players feature.

- ORM models → Pydantic schemas (API responses)
- osu! API DTOs → domain snapshots (Anti-Corruption Layer)
"""

from app.core.osu_api.models import OsuUserDTO

from .orm_models import PlayerORM
from .schemas import PlayerRankSnapshot, PlayerResponse


def player_orm_to_response(player: PlayerORM) -> PlayerResponse:
    """Transform PlayerORM domain model to PlayerResponse API schema.

    :param player: Player domain model from database
    :returns: Player response schema for API
    """
    return PlayerResponse.model_validate(player)


def osu_user_to_snapshot(user: OsuUserDTO) -> PlayerRankSnapshot:
    """Translate an osu! API user entry into a rank snapshot."""
    return PlayerRankSnapshot(
        rank=user.rank,
        username=user.username,
        country=user.country,
    )
