import pytest
from datetime import datetime, timezone
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock

from app.core.exceptions import NotFoundError
from app.features.players.dependencies import get_player_service
from app.features.players.schemas import PlayerResponse
from app.main import app


@pytest.fixture
def mock_service():
    return AsyncMock()


@pytest.fixture
def client(mock_service):
    app.dependency_overrides[get_player_service] = lambda: mock_service
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_get_player(client, mock_service):
    """Test players are readable without logging in"""
    mock_service.get_by_osu_id.return_value = PlayerResponse(
        id=1,
        osu_id=12345,
        username="mrekk",
        created=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )

    response = client.get("/api/players/12345")

    assert response.status_code == 200
    assert response.json()["username"] == "mrekk"
    mock_service.get_by_osu_id.assert_awaited_once_with(12345)


def test_get_player_not_found(client, mock_service):
    """Test an unknown player maps to 404"""
    mock_service.get_by_osu_id.side_effect = NotFoundError("No player with osu! id 1")

    response = client.get("/api/players/1")

    assert response.status_code == 404


def test_player_id_mapping(client, mock_service):
    """Test the osu! id to internal id endpoint"""
    mock_service.get_id_by_osu_id.return_value = 7

    response = client.get("/api/players/12345/id")

    assert response.status_code == 200
    assert response.json() == 7
