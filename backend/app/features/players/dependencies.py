"""Dependencies for the players feature.

Injects repository into service following dependency inversion principle.
"""

from typing import Annotated

from fastapi import Depends

from app.core.dependencies import DbSessionDep
from .service import PlayerService
from .repository import SQLAlchemyPlayerRepository, PlayerRepositoryInterface


async def get_player_repository(db: DbSessionDep) -> PlayerRepositoryInterface:
    """Get player repository instance.

    :param db: Database session
    :returns: Player repository implementation
    """
    return SQLAlchemyPlayerRepository(db)


async def get_player_service(
    repository: Annotated[PlayerRepositoryInterface, Depends(get_player_repository)],
) -> PlayerService:
    """Get player service instance.

    :param repository: Player repository
    :returns: Player service with injected dependencies
    """
    return PlayerService(repository)


# Type aliases for cleaner dependency injection
PlayerServiceDep = Annotated[PlayerService, Depends(get_player_service)]
PlayerRepositoryDep = Annotated[
    PlayerRepositoryInterface, Depends(get_player_repository)
]

__all__ = [
    "get_player_service",
    "get_player_repository",
    "PlayerServiceDep",
    "PlayerRepositoryDep",
]
