import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock

from app.core.exceptions import NotFoundError
from app.features.auth.dependencies import get_current_user
from app.features.ratings.dependencies import get_ratings_service
from app.features.ratings.schemas import BatchRatingResult
from app.main import app


@pytest.fixture
def mock_service():
    return AsyncMock()


@pytest.fixture
def client(mock_service):
    app.dependency_overrides[get_ratings_service] = lambda: mock_service
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_get_ratings_is_public(client, mock_service):
    """Test ratings can be read without logging in"""
    mock_service.get_for_player.return_value = []

    response = client.get("/api/ratings/12345")

    assert response.status_code == 200
    mock_service.get_for_player.assert_awaited_once_with(12345)


def test_get_ratings_without_data(client, mock_service):
    """Test a player without ratings maps to 404"""
    mock_service.get_for_player.side_effect = NotFoundError(
        "User with id 12345 does not have any data"
    )

    response = client.get("/api/ratings/12345")

    assert response.status_code == 404
    assert response.json()["detail"] == "User with id 12345 does not have any data"


def test_update_rejects_mismatched_player_id(client, mock_service, admin_user):
    """Test the body's player id must match the path"""
    app.dependency_overrides[get_current_user] = lambda: admin_user

    response = client.put(
        "/api/ratings/5/update", json={"player_id": 6, "mu": 1000.0, "sigma": 300.0}
    )

    assert response.status_code == 400
    mock_service.insert_or_update.assert_not_awaited()


def test_update_requires_privileged_role(client, mock_service, verifier_user):
    """Test rating writes are reserved for admin and system callers"""
    app.dependency_overrides[get_current_user] = lambda: verifier_user

    response = client.put(
        "/api/ratings/5/update", json={"player_id": 5, "mu": 1000.0, "sigma": 300.0}
    )

    assert response.status_code == 403


def test_batch(client, mock_service, admin_user):
    """Test the batch endpoint passes every update through"""
    app.dependency_overrides[get_current_user] = lambda: admin_user
    mock_service.batch_insert_or_update.return_value = BatchRatingResult(
        written=2, history_rows=2
    )

    response = client.post(
        "/api/ratings/batch",
        json=[
            {"player_id": 1, "mu": 1000.0, "sigma": 300.0},
            {"player_id": 2, "mode": 1, "mu": 900.0, "sigma": 250.0},
        ],
    )

    assert response.status_code == 200
    assert response.json() == {"written": 2, "history_rows": 2}
    updates = mock_service.batch_insert_or_update.await_args.args[0]
    assert [u.player_id for u in updates] == [1, 2]
