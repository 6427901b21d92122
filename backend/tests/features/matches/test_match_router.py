import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock

from app.core.enums import MatchVerificationStatus
from app.core.exceptions import DuplicateTournamentError, NotFoundError
from app.features.auth.dependencies import get_current_user
from app.features.matches.dependencies import get_matches_service
from app.features.matches.schemas import (
    BatchSubmissionResult,
    MatchResponse,
    VerifyDuplicatesResult,
)
from app.main import app

BATCH = {
    "tournament_name": "OWC 2024",
    "abbreviation": "OWC",
    "rank_range_lower_bound": 1,
    "team_size": 4,
    "mode": 0,
    "ids": [1001, 1002],
}


@pytest.fixture
def mock_service():
    return AsyncMock()


@pytest.fixture
def client(mock_service):
    app.dependency_overrides[get_matches_service] = lambda: mock_service
    yield TestClient(app)
    app.dependency_overrides.clear()


def _login(user):
    app.dependency_overrides[get_current_user] = lambda: user


def test_submit_batch_unverified(client, mock_service, plain_user):
    """Test any logged-in user can submit an unverified batch"""
    # Setup
    _login(plain_user)
    mock_service.submit_batch.return_value = BatchSubmissionResult(
        tournament_id=42,
        inserted=2,
        updated=0,
        verification_status=MatchVerificationStatus.PENDING_VERIFICATION,
    )

    # Execute
    response = client.post("/api/matches/batch", json=BATCH)

    # Verify
    assert response.status_code == 200
    assert response.json()["inserted"] == 2
    mock_service.submit_batch.assert_awaited_once()
    assert mock_service.submit_batch.await_args.args[2] is False


def test_submit_batch_verified_requires_verifier(client, mock_service, plain_user):
    """Test a pre-verified batch from a plain user is unauthorized"""
    _login(plain_user)

    response = client.post("/api/matches/batch?verified=true", json=BATCH)

    assert response.status_code == 401
    mock_service.submit_batch.assert_not_awaited()


def test_submit_batch_verified_as_verifier(client, mock_service, verifier_user):
    """Test verifiers may submit pre-verified batches"""
    _login(verifier_user)
    mock_service.submit_batch.return_value = BatchSubmissionResult(
        tournament_id=42,
        inserted=0,
        updated=2,
        verification_status=MatchVerificationStatus.VERIFIED,
    )

    response = client.post("/api/matches/batch?verified=true", json=BATCH)

    assert response.status_code == 200
    assert mock_service.submit_batch.await_args.args[2] is True


def test_submit_batch_duplicate_tournament(client, mock_service, plain_user):
    """Test a duplicate tournament maps to 400 with a readable message"""
    _login(plain_user)
    mock_service.submit_batch.side_effect = DuplicateTournamentError("OWC 2024", 0)

    response = client.post("/api/matches/batch", json=BATCH)

    assert response.status_code == 400
    assert "OWC 2024" in response.json()["detail"]


def test_submit_batch_requires_login(client, mock_service):
    """Test anonymous submissions are rejected"""
    response = client.post("/api/matches/batch", json=BATCH)

    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"


def test_submit_batch_rejects_bad_ids(client, mock_service, plain_user):
    """Test non-positive lobby ids fail request validation"""
    _login(plain_user)

    response = client.post("/api/matches/batch", json={**BATCH, "ids": [1, -5]})

    assert response.status_code == 422
    mock_service.submit_batch.assert_not_awaited()


def test_refresh_requires_privileged_role(client, mock_service, verifier_user):
    """Test verifiers cannot re-arm automation checks"""
    _login(verifier_user)

    response = client.post("/api/matches/refresh/AutomationChecks")

    assert response.status_code == 403
    mock_service.refresh_automation_checks.assert_not_awaited()


def test_refresh_invalid_only(client, mock_service, admin_user):
    """Test the invalid-only refresh flags rejected matches"""
    _login(admin_user)
    mock_service.refresh_automation_checks.return_value = 3

    response = client.post("/api/matches/refresh/AutomationChecks/invalid")

    assert response.status_code == 200
    assert response.json() == {"affected": 3}
    mock_service.refresh_automation_checks.assert_awaited_once_with(True)


def test_get_all_ids(client, mock_service, admin_user):
    """Test the rating-eligible id list"""
    _login(admin_user)
    mock_service.get_all_ids.return_value = [1, 2, 3]

    response = client.get("/api/matches/all")

    assert response.status_code == 200
    assert response.json() == [1, 2, 3]
    mock_service.get_all_ids.assert_awaited_once_with(True)


def test_verify_duplicates(client, mock_service, verifier_user):
    """Test the verifier id is taken from the caller"""
    _login(verifier_user)
    mock_service.verify_duplicates.return_value = VerifyDuplicatesResult(
        root_id=1, marked=2, merged=2
    )

    response = client.post(
        "/api/matches/duplicates", json={"root_id": 1, "confirmed": True}
    )

    assert response.status_code == 200
    assert response.json()["merged"] == 2
    mock_service.verify_duplicates.assert_awaited_once_with(
        1, verifier_user.user_id, True
    )


def test_duplicates_forbidden_for_plain_user(client, mock_service, plain_user):
    """Test plain users cannot see duplicate suspicions"""
    _login(plain_user)

    response = client.get("/api/matches/duplicates")

    assert response.status_code == 403


def test_get_match_not_found(client, mock_service, admin_user):
    """Test an unknown lobby id maps to 404"""
    _login(admin_user)
    mock_service.get_by_osu_id.side_effect = NotFoundError("No match with osu! id 5")

    response = client.get("/api/matches/5")

    assert response.status_code == 404
    assert response.json() == {"detail": "No match with osu! id 5"}


def test_update_verification(client, mock_service, verifier_user):
    """Test the manual verification endpoint"""
    _login(verifier_user)
    mock_service.update_verification_status.return_value = MatchResponse(
        id=1,
        match_id=1001,
        tournament_id=1,
        verification_status=MatchVerificationStatus.REJECTED,
        needs_auto_check=False,
        is_api_processed=True,
    )

    response = client.patch(
        "/api/matches/1/verification", json={"status": 3, "info": "warmup"}
    )

    assert response.status_code == 200
    assert response.json()["verification_status"] == 3
