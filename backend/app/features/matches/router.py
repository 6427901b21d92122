"""Match ingestion, verification and lookup endpoints."""

from typing import List

from fastapi import APIRouter, Query, Request

from app.core.exceptions import AuthorizationError
from app.core.rate_limiter import limiter
from app.features.auth.dependencies import (
    CurrentUserDep,
    PrivilegedUserDep,
    VerifierUserDep,
)
from app.features.auth.roles import can_verify
from .dependencies import MatchesServiceDep
from .schemas import (
    BatchSubmission,
    BatchSubmissionResult,
    MatchDuplicateCollection,
    MatchResponse,
    RefreshResult,
    VerificationUpdate,
    VerifyDuplicatesRequest,
    VerifyDuplicatesResult,
)

router = APIRouter(prefix="/matches", tags=["matches"])


@router.post("/batch", response_model=BatchSubmissionResult)
@limiter.limit("30/minute")
async def submit_batch(
    request: Request,
    submission: BatchSubmission,
    current_user: CurrentUserDep,
    service: MatchesServiceDep,
    verified: bool = Query(False, description="Submit as pre-verified"),
) -> BatchSubmissionResult:
    """Submit a batch of osu! lobby ids under a tournament.

    Only verifiers, admins and the system actor may submit pre-verified
    batches.
    """
    if verified and not can_verify(current_user.roles):
        raise AuthorizationError(
            "Verified submissions require the verifier role", status_code=401
        )
    return await service.submit_batch(submission, current_user, verified)


@router.post("/refresh/AutomationChecks", response_model=RefreshResult)
async def refresh_all_automation_checks(
    _: PrivilegedUserDep, service: MatchesServiceDep
) -> RefreshResult:
    """Queue every match for the automated checker."""
    return RefreshResult(affected=await service.refresh_automation_checks(False))


@router.post("/refresh/AutomationChecks/invalid", response_model=RefreshResult)
async def refresh_invalid_automation_checks(
    _: PrivilegedUserDep, service: MatchesServiceDep
) -> RefreshResult:
    """Queue rejected matches for the automated checker."""
    return RefreshResult(affected=await service.refresh_automation_checks(True))


@router.get("/all", response_model=List[int])
async def get_all_match_ids(
    _: PrivilegedUserDep,
    service: MatchesServiceDep,
    only_valid: bool = Query(True, description="Only verified, unmerged matches"),
) -> List[int]:
    """List match ids eligible for rating."""
    return await service.get_all_ids(only_valid)


@router.get("/duplicates", response_model=List[MatchDuplicateCollection])
async def get_duplicates(
    _: VerifierUserDep, service: MatchesServiceDep
) -> List[MatchDuplicateCollection]:
    """List suspected duplicates grouped by root match."""
    return await service.get_all_duplicates()


@router.post("/duplicates", response_model=VerifyDuplicatesResult)
async def verify_duplicates(
    body: VerifyDuplicatesRequest,
    current_user: VerifierUserDep,
    service: MatchesServiceDep,
) -> VerifyDuplicatesResult:
    """Confirm or deny every suspected duplicate of a root match."""
    return await service.verify_duplicates(
        body.root_id, current_user.user_id, body.confirmed
    )


@router.get("/player/{osu_id}", response_model=List[MatchResponse])
async def get_player_matches(
    osu_id: int, _: PrivilegedUserDep, service: MatchesServiceDep
) -> List[MatchResponse]:
    """List matches a player appeared in."""
    return await service.get_player_matches(osu_id)


@router.get("/{osu_match_id}", response_model=MatchResponse)
async def get_match(
    osu_match_id: int, _: PrivilegedUserDep, service: MatchesServiceDep
) -> MatchResponse:
    """Get a match by osu! lobby id; 404 when unknown."""
    return await service.get_by_osu_id(osu_match_id)


@router.get("/{match_id}/osuid", response_model=int)
async def get_osu_match_id(
    match_id: int, _: PrivilegedUserDep, service: MatchesServiceDep
) -> int:
    """Map an internal match id to the osu! lobby id."""
    return await service.get_osu_match_id(match_id)


@router.patch("/{match_id}/verification", response_model=MatchResponse)
async def update_verification_status(
    match_id: int,
    body: VerificationUpdate,
    current_user: VerifierUserDep,
    service: MatchesServiceDep,
) -> MatchResponse:
    """Manually verify or reject a pending match."""
    return await service.update_verification_status(match_id, body, current_user)
