"""Matches feature: ingestion, verification and duplicate resolution."""

from .orm_models import MatchDuplicateXRefORM, MatchORM, MatchPlayerORM, TournamentORM
from .router import router as matches_router
from .service import MatchesService

__all__ = [
    "TournamentORM",
    "MatchORM",
    "MatchDuplicateXRefORM",
    "MatchPlayerORM",
    "matches_router",
    "MatchesService",
]
