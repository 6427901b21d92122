"""Players feature - osu! player directory."""

from .orm_models import PlayerORM
from .router import router as players_router
from .service import PlayerService

__all__ = ["PlayerORM", "players_router", "PlayerService"]
