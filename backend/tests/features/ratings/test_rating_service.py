import pytest
from unittest.mock import AsyncMock
from sqlalchemy.exc import SQLAlchemyError

from app.core.enums import Ruleset
from app.core.exceptions import NotFoundError, PersistenceError
from app.features.players.repository import PlayerRepositoryInterface
from app.features.ratings.orm_models import RatingHistoryORM, RatingORM
from app.features.ratings.repository import RatingRepositoryInterface
from app.features.ratings.schemas import RatingUpdate
from app.features.ratings.service import RatingsService


@pytest.fixture
def mock_repository():
    repository = AsyncMock(spec=RatingRepositoryInterface)
    repository.get.return_value = None
    return repository


@pytest.fixture
def mock_player_repository():
    return AsyncMock(spec=PlayerRepositoryInterface)


@pytest.fixture
def service(mock_repository, mock_player_repository, fake_clock):
    return RatingsService(mock_repository, mock_player_repository, clock=fake_clock)


def _history_rows(mock_repository):
    return [call.args[0] for call in mock_repository.add_history.await_args_list]


async def test_insert_records_initial_estimate(service, mock_repository):
    """Test a first rating is inserted with one history row holding the initial values"""
    # Execute
    result = await service.insert_or_update(
        RatingUpdate(player_id=1, mode=Ruleset.TAIKO, mu=1000.0, sigma=300.0)
    )

    # Verify
    assert result.created is True
    assert result.rating.mu_initial == 1000.0
    assert result.rating.sigma_initial == 300.0

    rating = mock_repository.add.await_args.args[0]
    assert isinstance(rating, RatingORM)
    assert rating.mode == int(Ruleset.TAIKO)

    history = _history_rows(mock_repository)
    assert len(history) == 1
    assert (history[0].mu, history[0].sigma) == (1000.0, 300.0)
    mock_repository.commit.assert_awaited_once()


async def test_update_snapshots_previous_estimate(
    service, mock_repository, fake_clock
):
    """Test an update archives the pre-update estimate before overwriting it"""
    # Setup
    existing = RatingORM.initial(player_id=1, mode=0, mu=1000.0, sigma=300.0)
    mock_repository.get.return_value = existing

    # Execute
    result = await service.insert_or_update(
        RatingUpdate(player_id=1, mu=1100.0, sigma=250.0, match_id=77)
    )

    # Verify
    assert result.created is False
    assert (existing.mu, existing.sigma) == (1100.0, 250.0)
    assert (existing.mu_initial, existing.sigma_initial) == (1000.0, 300.0)
    assert existing.updated == fake_clock.now()

    history = _history_rows(mock_repository)
    assert len(history) == 1
    assert isinstance(history[0], RatingHistoryORM)
    assert (history[0].mu, history[0].sigma) == (1000.0, 300.0)
    assert history[0].match_id == 77
    mock_repository.add.assert_not_awaited()


async def test_batch_writes_one_history_row_per_update(service, mock_repository):
    """Test a batch yields exactly one history row per update and one commit"""
    # Setup
    existing = RatingORM.initial(player_id=2, mode=0, mu=900.0, sigma=200.0)
    mock_repository.get.side_effect = [None, existing, None]

    # Execute
    result = await service.batch_insert_or_update(
        [
            RatingUpdate(player_id=1, mu=1000.0, sigma=300.0),
            RatingUpdate(player_id=2, mu=950.0, sigma=190.0),
            RatingUpdate(player_id=3, mode=Ruleset.MANIA, mu=1200.0, sigma=280.0),
        ]
    )

    # Verify
    assert result.written == 3
    assert result.history_rows == 3
    assert mock_repository.add_history.await_count == 3
    assert mock_repository.add.await_count == 2
    mock_repository.commit.assert_awaited_once()


async def test_failed_commit_rolls_back(service, mock_repository):
    """Test a failed write keeps neither the rating nor its history"""
    # Setup
    mock_repository.commit.side_effect = SQLAlchemyError("deadlock detected")

    # Execute / Verify
    with pytest.raises(PersistenceError):
        await service.batch_insert_or_update(
            [RatingUpdate(player_id=1, mu=1000.0, sigma=300.0)]
        )

    mock_repository.rollback.assert_awaited_once()


async def test_failure_mid_batch_rolls_back(service, mock_repository):
    """Test an error while staging aborts the whole batch"""
    # Setup
    mock_repository.add_history.side_effect = [None, SQLAlchemyError("fk violation")]

    # Execute / Verify
    with pytest.raises(PersistenceError):
        await service.batch_insert_or_update(
            [
                RatingUpdate(player_id=1, mu=1000.0, sigma=300.0),
                RatingUpdate(player_id=999, mu=1000.0, sigma=300.0),
            ]
        )

    mock_repository.commit.assert_not_awaited()
    mock_repository.rollback.assert_awaited_once()


async def test_get_for_player_by_osu_id(
    service, mock_repository, mock_player_repository
):
    """Test ratings are looked up through the osu! id mapping"""
    # Setup
    mock_player_repository.get_id_by_osu_id.return_value = 5
    mock_repository.get_for_player.return_value = [
        RatingORM.initial(player_id=5, mode=0, mu=1000.0, sigma=300.0)
    ]

    # Execute
    ratings = await service.get_for_player(12345)

    # Verify
    assert len(ratings) == 1
    assert ratings[0].player_id == 5
    mock_repository.get_for_player.assert_awaited_once_with(5)


async def test_get_for_unknown_player(service, mock_repository, mock_player_repository):
    """Test an unknown osu! id reports missing data"""
    mock_player_repository.get_id_by_osu_id.return_value = None

    with pytest.raises(NotFoundError) as exc_info:
        await service.get_for_player(12345)

    assert exc_info.value.message == "User with id 12345 does not have any data"
    mock_repository.get_for_player.assert_not_awaited()
