"""Rating ledger service.

Every write produces exactly one history row in the same transaction as the
rating itself:

- update: the row holds the estimate *before* it is overwritten
- insert: the row holds the initial estimate
"""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Iterable, List, Optional, Tuple

import structlog
from sqlalchemy.exc import SQLAlchemyError

from app.core.clock import Clock, system_clock
from app.core.decorators import service_error_handler
from app.core.exceptions import NotFoundError, PersistenceError
from app.features.players.repository import PlayerRepositoryInterface
from .orm_models import RatingORM
from .repository import RatingRepositoryInterface
from .schemas import (
    BatchRatingResult,
    RatingHistoryResponse,
    RatingResponse,
    RatingUpdate,
    RatingWriteResult,
)

logger = structlog.get_logger(__name__)


class RatingsService:
    """Service for reading and writing ratings (Thin Orchestration Layer)."""

    def __init__(
        self,
        repository: RatingRepositoryInterface,
        player_repository: PlayerRepositoryInterface,
        clock: Optional[Clock] = None,
    ):
        """Initialize ratings service.

        :param repository: Rating repository; owns the unit of work
        :param player_repository: Player repository for osu! id lookups
        :param clock: Time source for ``updated`` stamps
        """
        self.repository = repository
        self.player_repository = player_repository
        self.clock = clock or system_clock

    @service_error_handler("RatingsService")
    async def insert_or_update(self, update: RatingUpdate) -> RatingWriteResult:
        """Write a player's rating and record one history row.

        :raises PersistenceError: If the write was rolled back
        """
        async with self._unit_of_work("insert_or_update", player_id=update.player_id):
            rating, created = await self._apply(update)

        logger.info(
            "Rating written",
            player_id=update.player_id,
            mode=int(update.mode),
            created=created,
        )
        return RatingWriteResult(
            rating=RatingResponse.model_validate(rating), created=created
        )

    @service_error_handler("RatingsService")
    async def batch_insert_or_update(
        self, updates: Iterable[RatingUpdate]
    ) -> BatchRatingResult:
        """Write many ratings in a single transaction.

        :raises PersistenceError: If the batch was rolled back; nothing is kept
        """
        updates = list(updates)
        async with self._unit_of_work("batch_insert_or_update", count=len(updates)):
            for update in updates:
                await self._apply(update)

        logger.info("Rating batch written", count=len(updates))
        return BatchRatingResult(written=len(updates), history_rows=len(updates))

    @service_error_handler("RatingsService")
    async def get_for_player(self, osu_id: int) -> List[RatingResponse]:
        """Get a player's ratings by osu! user id.

        :raises NotFoundError: If the player is unknown or has no ratings
        """
        player_id = await self.player_repository.get_id_by_osu_id(osu_id)
        ratings = (
            await self.repository.get_for_player(player_id)
            if player_id is not None
            else []
        )
        if not ratings:
            raise NotFoundError(
                message=f"User with id {osu_id} does not have any data",
                service="RatingsService",
                operation="get_for_player",
                context={"osu_id": osu_id},
            )
        return [RatingResponse.model_validate(rating) for rating in ratings]

    @service_error_handler("RatingsService")
    async def get_current(self, player_id: int, mode: int) -> Optional[RatingResponse]:
        """Get the current rating of a player in a ruleset, if any."""
        rating = await self.repository.get(player_id, mode)
        return RatingResponse.model_validate(rating) if rating else None

    @service_error_handler("RatingsService")
    async def get_history(
        self,
        player_id: int,
        mode: int,
        date_min: Optional[datetime] = None,
        date_max: Optional[datetime] = None,
    ) -> List[RatingHistoryResponse]:
        """Get rating history for a player and ruleset, oldest first."""
        rows = await self.repository.get_history(player_id, mode, date_min, date_max)
        return [RatingHistoryResponse.model_validate(row) for row in rows]

    async def _apply(self, update: RatingUpdate) -> Tuple[RatingORM, bool]:
        mode = int(update.mode)
        rating = await self.repository.get(update.player_id, mode)

        if rating is not None:
            await self.repository.add_history(rating.snapshot(update.match_id))
            rating.apply(update.mu, update.sigma, self.clock.now())
            return rating, False

        rating = RatingORM.initial(update.player_id, mode, update.mu, update.sigma)
        await self.repository.add(rating)
        await self.repository.add_history(rating.snapshot(update.match_id))
        return rating, True

    @asynccontextmanager
    async def _unit_of_work(self, operation: str, **context) -> AsyncIterator[None]:
        try:
            yield
            await self.repository.commit()
        except SQLAlchemyError as e:
            await self.repository.rollback()
            logger.error(
                "Rating write rolled back", operation=operation, error=str(e), **context
            )
            raise PersistenceError(
                "Failed to write rating",
                service="RatingsService",
                operation=operation,
                context=context,
                original_error=e,
            ) from e
        except Exception:
            await self.repository.rollback()
            raise
