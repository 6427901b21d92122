import json
import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

from app.core.config import Settings
from app.core.enums import Ruleset
from app.core.osu_track.client import OsuTrackClient
from app.core.rate_limiter import FixedWindowRateLimiter
from app.features.jobs.implementations.osu_track import HISTORY_WINDOW, OsuTrackWorker
from app.features.players.orm_models import PlayerORM
from app.features.players.repository import PlayerRepositoryInterface
from app.features.ratings.repository import RatingRepositoryInterface

OLDEST = datetime(2020, 3, 1, tzinfo=timezone.utc)


def _history(*entries):
    return json.dumps(
        [
            {"pp_rank": rank, "timestamp": timestamp, "pp_raw": 100.0}
            for rank, timestamp in entries
        ]
    )


@pytest.fixture
def mock_client():
    return AsyncMock(spec=OsuTrackClient)


@pytest.fixture
def player_repository():
    return AsyncMock(spec=PlayerRepositoryInterface)


@pytest.fixture
def rating_repository():
    repository = AsyncMock(spec=RatingRepositoryInterface)

    # Only standard has local rating history
    async def oldest(player_id, mode):
        return OLDEST if mode == int(Ruleset.STANDARD) else None

    repository.get_oldest_history_date.side_effect = oldest
    return repository


@pytest.fixture
def make_worker(mock_client, player_repository, rating_repository, fake_clock):
    def _make(limit=200):
        return OsuTrackWorker(
            client=mock_client,
            rate_limiter=FixedWindowRateLimiter(
                limit=limit, window=timedelta(minutes=1), clock=fake_clock
            ),
            player_repository_factory=lambda db: player_repository,
            rating_repository_factory=lambda db: rating_repository,
            settings=Settings(osu_track_batch_size=10),
            clock=fake_clock,
        )

    return _make


@pytest.fixture
def player():
    return PlayerORM(id=1, osu_id=4787150, rank_standard=5000, rank_taiko=900)


async def test_backfill_uses_earliest_snapshot(
    make_worker, mock_client, player_repository, rating_repository, player, fake_clock
):
    """Test the first osu!track snapshot becomes the earliest known rank"""
    # Setup
    worker = make_worker()
    mock_client.get_stats_history.return_value = _history(
        (1234, "2020-03-02T10:00:00"), (1100, "2020-06-01T10:00:00")
    )

    # Execute
    await worker.backfill_player(player_repository, rating_repository, player)

    # Verify
    mock_client.get_stats_history.assert_awaited_once_with(
        4787150, Ruleset.STANDARD, OLDEST, OLDEST + HISTORY_WINDOW
    )
    assert player.earliest_osu_global_rank == 1234
    assert player.earliest_osu_global_rank_date == datetime(
        2020, 3, 2, 10, tzinfo=timezone.utc
    )
    # Modes without history keep the seeded current rank
    assert player.earliest_taiko_global_rank == 900
    assert player.earliest_taiko_global_rank_date == fake_clock.now()
    player_repository.save.assert_awaited_once_with(player)
    assert worker.metrics["api_requests_made"] == 1
    assert worker.metrics["records_updated"] == 1


@pytest.mark.parametrize("body", ["", "[]", "  []  ", "not json", '[{"rank": 1}]'])
async def test_empty_or_invalid_history_is_skipped(
    make_worker, mock_client, player_repository, rating_repository, player, fake_clock, body
):
    """Test empty and unparsable histories leave the seeded rank in place"""
    worker = make_worker()
    mock_client.get_stats_history.return_value = body

    await worker.backfill_player(player_repository, rating_repository, player)

    assert player.earliest_osu_global_rank == 5000
    assert player.earliest_osu_global_rank_date == fake_clock.now()
    player_repository.save.assert_awaited_once_with(player)


async def test_waits_exactly_until_window_reset(
    make_worker, mock_client, player_repository, rating_repository, fake_clock
):
    """Test an exhausted budget waits for the remaining window and no longer"""
    # Setup
    worker = make_worker(limit=1)
    mock_client.get_stats_history.return_value = "[]"
    first = PlayerORM(id=1, osu_id=1)
    second = PlayerORM(id=2, osu_id=2)

    # Execute
    await worker.backfill_player(player_repository, rating_repository, first)
    fake_clock.advance(15)
    await worker.backfill_player(player_repository, rating_repository, second)

    # Verify
    assert fake_clock.sleeps == [45.0]
    assert mock_client.get_stats_history.await_count == 2


async def test_never_waits_after_window_passed(
    make_worker, mock_client, player_repository, rating_repository, fake_clock
):
    """Test no wait happens once the window already reset"""
    worker = make_worker(limit=1)
    mock_client.get_stats_history.return_value = "[]"

    await worker.backfill_player(
        player_repository, rating_repository, PlayerORM(id=1, osu_id=1)
    )
    fake_clock.advance(120)
    await worker.backfill_player(
        player_repository, rating_repository, PlayerORM(id=2, osu_id=2)
    )

    assert fake_clock.sleeps == []
    assert worker.rate_limiter.seconds_until_reset() == 60.0


async def test_shutdown_interrupts_rate_limit_wait(
    make_worker, mock_client, player_repository, rating_repository, player
):
    """Test a shutdown during the wait leaves the player unsaved for a later run"""
    # Setup
    worker = make_worker(limit=1)
    worker.rate_limiter.record()
    worker.shutdown_event.set()

    # Execute
    await worker.backfill_player(player_repository, rating_repository, player)

    # Verify
    mock_client.get_stats_history.assert_not_awaited()
    player_repository.save.assert_not_awaited()
    assert worker.metrics["records_updated"] == 0


async def test_execute_processes_batch(
    make_worker, mock_client, player_repository
):
    """Test a tick backfills every player missing an earliest rank"""
    # Setup
    worker = make_worker()
    players = [PlayerORM(id=1, osu_id=1), PlayerORM(id=2, osu_id=2)]
    player_repository.get_missing_earliest_rank.return_value = players
    mock_client.get_stats_history.return_value = "[]"

    # Execute
    await worker.execute(MagicMock())

    # Verify
    player_repository.get_missing_earliest_rank.assert_awaited_once_with(10)
    assert player_repository.save.await_count == 2
    assert worker.lock.locked() is False


async def test_execute_without_players(make_worker, mock_client, player_repository):
    """Test an empty queue makes no requests"""
    worker = make_worker()
    player_repository.get_missing_earliest_rank.return_value = []

    await worker.execute(MagicMock())

    mock_client.get_stats_history.assert_not_awaited()
