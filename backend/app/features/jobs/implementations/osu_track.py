"""osu!track Worker - backfills each player's earliest known global rank.

For players never backfilled, the current rank is first copied into the
earliest-rank fields. Then, per ruleset with local rating history, osu!track
is asked for the year following the oldest history entry and its first
(earliest) snapshot replaces the seeded value.

osu!track allows a fixed number of requests per window. The worker owns
that budget and guards it with a lock, so overlapping ticks run one after
another instead of sharing (or skipping) it.
"""

import asyncio
from datetime import timedelta
from typing import Callable, Optional

import structlog
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import Ruleset
from app.core.osu_track.client import OsuTrackClient, parse_stats_history
from app.core.rate_limiter import FixedWindowRateLimiter
from app.features.players.orm_models import PlayerORM
from app.features.players.repository import (
    PlayerRepositoryInterface,
    SQLAlchemyPlayerRepository,
)
from app.features.ratings.repository import (
    RatingRepositoryInterface,
    SQLAlchemyRatingRepository,
)
from ..base import BaseWorker

logger = structlog.get_logger(__name__)

HISTORY_WINDOW = timedelta(days=365)


class OsuTrackWorker(BaseWorker):
    """Worker that fetches historical ranks from osu!track."""

    name = "osu-track"

    def __init__(
        self,
        client: Optional[OsuTrackClient] = None,
        rate_limiter: Optional[FixedWindowRateLimiter] = None,
        player_repository_factory: Callable[
            [AsyncSession], PlayerRepositoryInterface
        ] = SQLAlchemyPlayerRepository,
        rating_repository_factory: Callable[
            [AsyncSession], RatingRepositoryInterface
        ] = SQLAlchemyRatingRepository,
        **kwargs,
    ):
        """Initialize the worker.

        :param client: osu!track client (one from config if None)
        :param rate_limiter: Request budget (built from config if None)
        :param player_repository_factory: Builds the player repository
        :param rating_repository_factory: Builds the rating repository
        """
        super().__init__(**kwargs)
        self.client = client or OsuTrackClient()
        self.rate_limiter = rate_limiter or FixedWindowRateLimiter(
            limit=self.settings.osu_track_requests_per_window,
            window=timedelta(seconds=self.settings.osu_track_window_seconds),
            clock=self.clock,
            name="osu-track",
        )
        self.player_repository_factory = player_repository_factory
        self.rating_repository_factory = rating_repository_factory
        self.lock = asyncio.Lock()

    async def close(self) -> None:
        await self.client.close()

    async def execute(self, db: AsyncSession) -> None:
        """Backfill one batch of players."""
        async with self.lock:
            player_repository = self.player_repository_factory(db)
            rating_repository = self.rating_repository_factory(db)

            players = await player_repository.get_missing_earliest_rank(
                self.settings.osu_track_batch_size
            )
            if not players:
                logger.debug("No players need historical ranks")
                return

            logger.info("Backfilling historical ranks", count=len(players))
            for player in players:
                if self.stopping:
                    return
                await self.backfill_player(player_repository, rating_repository, player)

    async def backfill_player(
        self,
        player_repository: PlayerRepositoryInterface,
        rating_repository: RatingRepositoryInterface,
        player: PlayerORM,
    ) -> None:
        """Seed and refine one player's earliest known ranks, then save.

        Nothing is saved when shutdown interrupts a rate-limit wait.
        """
        player.seed_earliest_known_ranks(self.clock.now())

        for mode in Ruleset:
            oldest = await rating_repository.get_oldest_history_date(
                player.id, int(mode)
            )
            if oldest is None:
                continue

            if await self.rate_limiter.wait_if_limited(self.shutdown_event):
                # Seeded values stay unsaved so the player is picked up again
                logger.info(
                    "Shutdown during rate-limit wait, player left for next run",
                    osu_id=player.osu_id,
                )
                return

            body = await self.client.get_stats_history(
                player.osu_id, mode, oldest, oldest + HISTORY_WINDOW
            )
            self.rate_limiter.record()
            self.increment_metric("api_requests_made")

            if not body or body.strip() == "[]":
                continue

            try:
                stats = parse_stats_history(body)
            except PydanticValidationError as e:
                logger.error(
                    "Failed to parse osu!track history",
                    osu_id=player.osu_id,
                    mode=int(mode),
                    error=str(e),
                )
                continue

            if not stats:
                continue

            earliest = stats[0]
            player.set_earliest_rank(mode, earliest.rank, earliest.timestamp)
            logger.debug(
                "Earliest rank found",
                osu_id=player.osu_id,
                mode=int(mode),
                rank=earliest.rank,
            )

        await player_repository.save(player)
        self.increment_metric("records_updated")
