import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

from app.core.config import Settings
from app.core.enums import Ruleset
from app.core.osu_api.errors import (
    AuthenticationError,
    RequestCancelledError,
    ServiceUnavailableError,
)
from app.features.jobs.implementations.player_data import OsuPlayerDataWorker
from app.features.players.gateway import OsuPlayerGateway
from app.features.players.orm_models import PlayerORM
from app.features.players.repository import PlayerRepositoryInterface
from app.features.players.schemas import PlayerRankSnapshot

LAST_SYNC = datetime(2023, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def mock_gateway():
    return AsyncMock(spec=OsuPlayerGateway)


@pytest.fixture
def mock_repository():
    return AsyncMock(spec=PlayerRepositoryInterface)


@pytest.fixture
def worker(mock_gateway, mock_repository, fake_clock):
    return OsuPlayerDataWorker(
        gateway=mock_gateway,
        repository_factory=lambda db: mock_repository,
        settings=Settings(player_refresh_batch_size=50, player_outdated_after_days=14),
        clock=fake_clock,
    )


def _player(id=1, osu_id=100):
    return PlayerORM(
        id=id, osu_id=osu_id, username="old name", rank_standard=9999, updated=LAST_SYNC
    )


async def test_sync_player_updates_every_mode(
    worker, mock_gateway, mock_repository, fake_clock
):
    """Test ranks, username and country are refreshed from osu!"""
    # Setup
    player = _player()
    ranks = {
        Ruleset.STANDARD: 1500,
        Ruleset.TAIKO: None,
        Ruleset.CATCH: 20000,
        Ruleset.MANIA: 300,
    }

    async def fetch_rank(osu_id, mode):
        return PlayerRankSnapshot(
            rank=ranks[mode], username=f"name-{int(mode)}", country="PL"
        )

    mock_gateway.fetch_rank.side_effect = fetch_rank

    # Execute
    await worker.sync_player(mock_repository, player)

    # Verify
    assert mock_gateway.fetch_rank.await_count == 4
    assert player.rank_standard == 1500
    assert player.rank_taiko is None
    assert player.rank_catch == 20000
    assert player.rank_mania == 300
    assert player.username == "name-0"
    assert player.country == "PL"
    assert player.updated == fake_clock.now()
    mock_repository.save.assert_awaited_once_with(player)
    assert worker.metrics["records_updated"] == 1


async def test_sync_player_missing_user_skips_remaining_modes(
    worker, mock_gateway, mock_repository, fake_clock
):
    """Test a user osu! does not return is stamped and left unchanged"""
    # Setup
    player = _player()
    mock_gateway.fetch_rank.return_value = None

    # Execute
    await worker.sync_player(mock_repository, player)

    # Verify
    mock_gateway.fetch_rank.assert_awaited_once_with(100, Ruleset.STANDARD)
    assert player.rank_standard == 9999
    assert player.username == "old name"
    assert player.updated == fake_clock.now()
    mock_repository.save.assert_awaited_once_with(player)
    assert worker.metrics["records_updated"] == 0


async def test_sync_player_failed_lookup_is_treated_as_missing(
    worker, mock_gateway, mock_repository, fake_clock
):
    """Test an API failure in a later mode stops the player but not the worker"""
    # Setup
    player = _player()
    mock_gateway.fetch_rank.side_effect = [
        PlayerRankSnapshot(rank=1500, username="new name", country="PL"),
        ServiceUnavailableError("down", status_code=503),
    ]

    # Execute
    await worker.sync_player(mock_repository, player)

    # Verify
    assert mock_gateway.fetch_rank.await_count == 2
    assert player.rank_standard == 1500
    assert player.updated == fake_clock.now()
    mock_repository.save.assert_awaited_once_with(player)


async def test_sync_player_shutdown_during_lookup_is_not_saved(
    worker, mock_gateway, mock_repository
):
    """Test a lookup cut short by shutdown leaves the player outdated"""
    # Setup
    player = _player()

    async def fetch_rank(osu_id, mode):
        worker.shutdown_event.set()
        raise RequestCancelledError("Request cancelled during retry backoff")

    mock_gateway.fetch_rank.side_effect = fetch_rank

    # Execute
    await worker.sync_player(mock_repository, player)

    # Verify
    assert player.updated == LAST_SYNC
    mock_repository.save.assert_not_awaited()


async def test_sync_player_authentication_failure_propagates(
    worker, mock_gateway, mock_repository
):
    """Test a bad API key stops the tick"""
    mock_gateway.fetch_rank.side_effect = AuthenticationError(
        "Invalid API key", status_code=401
    )

    with pytest.raises(AuthenticationError):
        await worker.sync_player(mock_repository, _player())

    mock_repository.save.assert_not_awaited()


async def test_execute_drains_outdated_players_once(
    worker, mock_gateway, mock_repository
):
    """Test each outdated player is refreshed once per tick"""
    # Setup
    players = [_player(1, 100), _player(2, 200)]
    mock_repository.get_outdated.return_value = players
    mock_gateway.fetch_rank.return_value = None

    # Execute
    await worker.execute(MagicMock())

    # Verify
    assert mock_repository.get_outdated.await_count == 2
    cutoff, limit = mock_repository.get_outdated.await_args.args
    assert cutoff == datetime(2023, 12, 18, tzinfo=timezone.utc)
    assert limit == 50
    assert mock_repository.save.await_count == 2


async def test_execute_stops_on_shutdown(worker, mock_gateway, mock_repository):
    """Test a shutdown request ends the tick before the next player"""
    mock_repository.get_outdated.return_value = [_player(1, 100), _player(2, 200)]
    mock_gateway.fetch_rank.return_value = None
    worker.shutdown_event.set()

    await worker.execute(MagicMock())

    mock_repository.get_outdated.assert_not_awaited()
    mock_gateway.fetch_rank.assert_not_awaited()
