"""Repository for the rating ledger.

Writes are flushed only; ``commit``/``rollback`` close the unit of work so a
rating and its history row are persisted together.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from .orm_models import RatingHistoryORM, RatingORM


class RatingRepositoryInterface(ABC):
    """Interface for rating repository."""

    @abstractmethod
    async def get(self, player_id: int, mode: int) -> Optional[RatingORM]:
        """Get the rating of a player in a ruleset."""
        pass

    @abstractmethod
    async def get_for_player(self, player_id: int) -> list[RatingORM]:
        """Get a player's ratings across rulesets."""
        pass

    @abstractmethod
    async def add(self, rating: RatingORM) -> None:
        """Stage a new rating."""
        pass

    @abstractmethod
    async def add_history(self, history: RatingHistoryORM) -> None:
        """Stage a history row."""
        pass

    @abstractmethod
    async def get_history(
        self,
        player_id: int,
        mode: int,
        date_min: Optional[datetime] = None,
        date_max: Optional[datetime] = None,
    ) -> list[RatingHistoryORM]:
        """Get history rows for a player and ruleset, oldest first.

        Args:
            player_id: Internal player id
            mode: Ruleset value
            date_min: Inclusive lower bound on ``created``
            date_max: Inclusive upper bound on ``created``
        """
        pass

    @abstractmethod
    async def get_oldest_history_date(
        self, player_id: int, mode: int
    ) -> Optional[datetime]:
        """Timestamp of the oldest history row, or None when there is none."""
        pass

    @abstractmethod
    async def commit(self) -> None:
        pass

    @abstractmethod
    async def rollback(self) -> None:
        pass


class SQLAlchemyRatingRepository(RatingRepositoryInterface):
    """SQLAlchemy implementation of rating repository."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, player_id: int, mode: int) -> Optional[RatingORM]:
        stmt = select(RatingORM).where(
            RatingORM.player_id == player_id, RatingORM.mode == mode
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_for_player(self, player_id: int) -> list[RatingORM]:
        stmt = (
            select(RatingORM)
            .where(RatingORM.player_id == player_id)
            .order_by(RatingORM.mode)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def add(self, rating: RatingORM) -> None:
        self.db.add(rating)
        await self.db.flush()

    async def add_history(self, history: RatingHistoryORM) -> None:
        self.db.add(history)
        await self.db.flush()

    async def get_history(
        self,
        player_id: int,
        mode: int,
        date_min: Optional[datetime] = None,
        date_max: Optional[datetime] = None,
    ) -> list[RatingHistoryORM]:
        stmt = select(RatingHistoryORM).where(
            RatingHistoryORM.player_id == player_id, RatingHistoryORM.mode == mode
        )
        if date_min is not None:
            stmt = stmt.where(RatingHistoryORM.created >= date_min)
        if date_max is not None:
            stmt = stmt.where(RatingHistoryORM.created <= date_max)

        result = await self.db.execute(
            stmt.order_by(RatingHistoryORM.created, RatingHistoryORM.id)
        )
        return list(result.scalars().all())

    async def get_oldest_history_date(
        self, player_id: int, mode: int
    ) -> Optional[datetime]:
        stmt = select(func.min(RatingHistoryORM.created)).where(
            RatingHistoryORM.player_id == player_id, RatingHistoryORM.mode == mode
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def commit(self) -> None:
        await self.db.commit()

    async def rollback(self) -> None:
        await self.db.rollback()
