"""Repository pattern implementation for players feature.

Provides collection-like interface for accessing player domain objects.
Isolates data access logic from business logic following Martin Fowler's Repository Pattern.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

import structlog
from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from .orm_models import PlayerORM

logger = structlog.get_logger(__name__)


class PlayerRepositoryInterface(ABC):
    """Interface for player repository.

    Defines contract for data access operations.
    Enables mocking and potential swap of implementations (e.g., caching layer).
    """

    @abstractmethod
    async def get_by_id(self, player_id: int) -> Optional[PlayerORM]:
        """Get player by internal id.

        :param player_id: Internal player id
        :returns: PlayerORM if found, None otherwise
        """
        pass

    @abstractmethod
    async def get_by_osu_id(self, osu_id: int) -> Optional[PlayerORM]:
        """Get player by osu! user id.

        :param osu_id: osu! user id
        :returns: PlayerORM if found, None otherwise
        """
        pass

    @abstractmethod
    async def get_all(self) -> list[PlayerORM]:
        """Get all players ordered by internal id."""
        pass

    @abstractmethod
    async def get_id_by_osu_id(self, osu_id: int) -> Optional[int]:
        """Map an osu! user id to the internal id."""
        pass

    @abstractmethod
    async def get_osu_id_by_id(self, player_id: int) -> Optional[int]:
        """Map an internal id to the osu! user id."""
        pass

    @abstractmethod
    async def get_outdated(self, cutoff: datetime, limit: int) -> list[PlayerORM]:
        """Get players whose last sync is older than ``cutoff`` (or missing).

        :param cutoff: Staleness threshold
        :param limit: Maximum number of players to return
        :returns: Players ordered oldest sync first
        """
        pass

    @abstractmethod
    async def get_missing_earliest_rank(self, limit: int) -> list[PlayerORM]:
        """Get players whose earliest known ranks were never backfilled.

        A player counts as backfilled once the standard earliest-rank date
        is stamped, even when the rank itself is unknown (unranked).
        """
        pass

    @abstractmethod
    async def save(self, player: PlayerORM) -> PlayerORM:
        """Commit changes to a player.

        :param player: Player domain object with changes
        :returns: The same player
        """
        pass


class SQLAlchemyPlayerRepository(PlayerRepositoryInterface):
    """SQLAlchemy implementation of player repository.

    Handles all database operations for players using SQLAlchemy async sessions.
    """

    def __init__(self, db: AsyncSession):
        """Initialize repository with database session.

        :param db: Async database session
        """
        self.db = db

    async def get_by_id(self, player_id: int) -> Optional[PlayerORM]:
        """Get player by internal id."""
        return await self.db.get(PlayerORM, player_id)

    async def get_by_osu_id(self, osu_id: int) -> Optional[PlayerORM]:
        """Get player by osu! user id."""
        stmt = select(PlayerORM).where(PlayerORM.osu_id == osu_id)
        result = await self.db.execute(stmt)
        player = result.scalar_one_or_none()

        logger.debug("player_lookup_by_osu_id", osu_id=osu_id, found=player is not None)
        return player

    async def get_all(self) -> list[PlayerORM]:
        """Get all players."""
        result = await self.db.execute(select(PlayerORM).order_by(PlayerORM.id))
        return list(result.scalars().all())

    async def get_id_by_osu_id(self, osu_id: int) -> Optional[int]:
        """Map osu! id to internal id."""
        stmt = select(PlayerORM.id).where(PlayerORM.osu_id == osu_id)
        return (await self.db.execute(stmt)).scalar_one_or_none()

    async def get_osu_id_by_id(self, player_id: int) -> Optional[int]:
        """Map internal id to osu! id."""
        stmt = select(PlayerORM.osu_id).where(PlayerORM.id == player_id)
        return (await self.db.execute(stmt)).scalar_one_or_none()

    async def get_outdated(self, cutoff: datetime, limit: int) -> list[PlayerORM]:
        """Get players with stale osu! data."""
        stmt = (
            select(PlayerORM)
            .where(or_(PlayerORM.updated.is_(None), PlayerORM.updated < cutoff))
            .order_by(PlayerORM.updated.asc().nulls_first(), PlayerORM.id)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        players = list(result.scalars().all())

        logger.debug("players_outdated", cutoff=cutoff.isoformat(), count=len(players))
        return players

    async def get_missing_earliest_rank(self, limit: int) -> list[PlayerORM]:
        """Get players whose earliest standard rank was never backfilled."""
        stmt = (
            select(PlayerORM)
            .where(PlayerORM.earliest_osu_global_rank_date.is_(None))
            .order_by(PlayerORM.id)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def save(self, player: PlayerORM) -> PlayerORM:
        """Save existing player changes."""
        self.db.add(player)
        await self.db.commit()

        logger.debug("player_saved", player_id=player.id, osu_id=player.osu_id)
        return player

