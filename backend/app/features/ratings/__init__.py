"""Ratings feature: current ratings and their append-only history."""

from .orm_models import RatingHistoryORM, RatingORM
from .router import router as ratings_router
from .service import RatingsService

__all__ = ["RatingORM", "RatingHistoryORM", "ratings_router", "RatingsService"]
