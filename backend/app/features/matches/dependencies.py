"""Dependencies for the matches feature.

Injects repositories into service following dependency inversion principle.
All repositories of one request share the request's session so the service
can commit them as a single unit of work.
"""

from typing import Annotated

from fastapi import Depends

from app.core.dependencies import DbSessionDep
from .repository import (
    DuplicateXRefRepositoryInterface,
    MatchRepositoryInterface,
    SQLAlchemyDuplicateXRefRepository,
    SQLAlchemyMatchRepository,
    SQLAlchemyTournamentRepository,
    TournamentRepositoryInterface,
)
from .service import MatchesService


async def get_match_repository(db: DbSessionDep) -> MatchRepositoryInterface:
    """Get match repository instance.

    :param db: Database session
    :returns: Match repository implementation
    """
    return SQLAlchemyMatchRepository(db)


async def get_tournament_repository(db: DbSessionDep) -> TournamentRepositoryInterface:
    """Get tournament repository instance."""
    return SQLAlchemyTournamentRepository(db)


async def get_duplicate_repository(
    db: DbSessionDep,
) -> DuplicateXRefRepositoryInterface:
    """Get duplicate cross-reference repository instance."""
    return SQLAlchemyDuplicateXRefRepository(db)


async def get_matches_service(
    repository: Annotated[MatchRepositoryInterface, Depends(get_match_repository)],
    tournament_repository: Annotated[
        TournamentRepositoryInterface, Depends(get_tournament_repository)
    ],
    duplicate_repository: Annotated[
        DuplicateXRefRepositoryInterface, Depends(get_duplicate_repository)
    ],
) -> MatchesService:
    """Get matches service instance.

    :param repository: Match repository
    :param tournament_repository: Tournament repository
    :param duplicate_repository: Duplicate cross-reference repository
    :returns: Matches service with injected dependencies
    """
    return MatchesService(repository, tournament_repository, duplicate_repository)


# Type aliases for cleaner dependency injection
MatchesServiceDep = Annotated[MatchesService, Depends(get_matches_service)]
MatchRepositoryDep = Annotated[MatchRepositoryInterface, Depends(get_match_repository)]

__all__ = [
    "get_matches_service",
    "get_match_repository",
    "get_tournament_repository",
    "get_duplicate_repository",
    "MatchesServiceDep",
    "MatchRepositoryDep",
]
