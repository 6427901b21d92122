"""Dependencies for the ratings feature."""

from typing import Annotated

from fastapi import Depends

from app.core.dependencies import DbSessionDep
from app.features.players.dependencies import get_player_repository
from app.features.players.repository import PlayerRepositoryInterface
from .repository import RatingRepositoryInterface, SQLAlchemyRatingRepository
from .service import RatingsService


async def get_rating_repository(db: DbSessionDep) -> RatingRepositoryInterface:
    """Get rating repository instance.

    :param db: Database session
    :returns: Rating repository implementation
    """
    return SQLAlchemyRatingRepository(db)


async def get_ratings_service(
    repository: Annotated[RatingRepositoryInterface, Depends(get_rating_repository)],
    player_repository: Annotated[
        PlayerRepositoryInterface, Depends(get_player_repository)
    ],
) -> RatingsService:
    """Get ratings service instance."""
    return RatingsService(repository, player_repository)


RatingsServiceDep = Annotated[RatingsService, Depends(get_ratings_service)]
RatingRepositoryDep = Annotated[
    RatingRepositoryInterface, Depends(get_rating_repository)
]

__all__ = [
    "get_rating_repository",
    "get_ratings_service",
    "RatingsServiceDep",
    "RatingRepositoryDep",
]
