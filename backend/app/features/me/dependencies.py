"""Dependencies for the me feature."""

from typing import Annotated

from fastapi import Depends

from app.core.dependencies import DbSessionDep
from app.features.auth.repository import SQLAlchemyUserRepository
from app.features.matches.repository import SQLAlchemyMatchRepository
from app.features.players.repository import SQLAlchemyPlayerRepository
from app.features.ratings.repository import SQLAlchemyRatingRepository
from .service import MeService


async def get_me_service(db: DbSessionDep) -> MeService:
    """Get me service instance over one session."""
    return MeService(
        SQLAlchemyUserRepository(db),
        SQLAlchemyPlayerRepository(db),
        SQLAlchemyRatingRepository(db),
        SQLAlchemyMatchRepository(db),
    )


MeServiceDep = Annotated[MeService, Depends(get_me_service)]
