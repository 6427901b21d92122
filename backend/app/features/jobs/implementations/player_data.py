"""osu! Player Data Worker - keeps current ranks, usernames and countries fresh.

Each tick drains the queue of players whose last sync is older than the
staleness threshold. A player is looked up once per ruleset; when osu! does
not return the user (or the lookup fails) the player is stamped as synced
and its remaining rulesets are skipped until the next refresh.
"""

from datetime import timedelta
from typing import Callable, Optional, Set

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import Ruleset
from app.core.osu_api.client import OsuAPIClient
from app.features.players.gateway import OsuPlayerGateway
from app.features.players.orm_models import PlayerORM
from app.features.players.repository import (
    PlayerRepositoryInterface,
    SQLAlchemyPlayerRepository,
)
from app.features.players.schemas import PlayerRankSnapshot
from ..base import BaseWorker
from ..error_handling import handle_external_errors

logger = structlog.get_logger(__name__)

RepositoryFactory = Callable[[AsyncSession], PlayerRepositoryInterface]


class OsuPlayerDataWorker(BaseWorker):
    """Worker that refreshes outdated players from the osu! API."""

    name = "osu-player-data"

    def __init__(
        self,
        gateway: Optional[OsuPlayerGateway] = None,
        repository_factory: RepositoryFactory = SQLAlchemyPlayerRepository,
        **kwargs,
    ):
        """Initialize the worker.

        :param gateway: osu! gateway; one over a fresh API client if None
        :param repository_factory: Builds the player repository for a session
        """
        super().__init__(**kwargs)
        self.api_client: Optional[OsuAPIClient] = None
        if gateway is None:
            self.api_client = OsuAPIClient(
                request_callback=self._record_api_request,
                clock=self.clock,
                stop_event=self.shutdown_event,
            )
            gateway = OsuPlayerGateway(self.api_client)
        self.gateway = gateway
        self.repository_factory = repository_factory

    async def close(self) -> None:
        if self.api_client:
            await self.api_client.close()

    async def execute(self, db: AsyncSession) -> None:
        """Refresh batches of outdated players until none are due."""
        repository = self.repository_factory(db)
        seen: Set[int] = set()

        while not self.stopping:
            cutoff = self.clock.now() - timedelta(
                days=self.settings.player_outdated_after_days
            )
            players = await repository.get_outdated(
                cutoff, self.settings.player_refresh_batch_size
            )
            players = [player for player in players if player.id not in seen]
            if not players:
                logger.debug("No outdated players")
                return

            logger.info("Refreshing outdated players", count=len(players))
            for player in players:
                if self.stopping:
                    return
                seen.add(player.id)
                await self.sync_player(repository, player)

    async def sync_player(
        self, repository: PlayerRepositoryInterface, player: PlayerORM
    ) -> None:
        """Refresh one player's ranks across all rulesets.

        :param repository: Player repository used to persist the result
        :param player: Player to refresh
        """
        for mode in Ruleset:
            if self.stopping:
                return

            snapshot = await self._fetch_rank(player, mode)
            if snapshot is None and self.stopping:
                # Lookup aborted by shutdown; the player stays outdated
                return
            if snapshot is None:
                player.mark_synced(self.clock.now())
                await repository.save(player)
                logger.warning(
                    "Failed to fetch osu! data, player is likely restricted",
                    osu_id=player.osu_id,
                    mode=int(mode),
                )
                return

            player.set_rank(mode, snapshot.rank)
            if mode is Ruleset.STANDARD:
                player.username = snapshot.username
            player.country = snapshot.country

        player.mark_synced(self.clock.now())
        await repository.save(player)
        self.increment_metric("records_updated")
        logger.debug("Player refreshed", osu_id=player.osu_id)

    @handle_external_errors(
        operation="fetch osu! rank",
        critical=False,
        log_context=lambda self, player, mode: {
            "osu_id": player.osu_id,
            "mode": int(mode),
        },
    )
    async def _fetch_rank(
        self, player: PlayerORM, mode: Ruleset
    ) -> Optional[PlayerRankSnapshot]:
        return await self.gateway.fetch_rank(player.osu_id, mode)
