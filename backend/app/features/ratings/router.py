"""Rating ledger endpoints."""

from typing import List

from fastapi import APIRouter

from app.core.exceptions import ValidationError
from app.features.auth.dependencies import PrivilegedUserDep
from .dependencies import RatingsServiceDep
from .schemas import (
    BatchRatingResult,
    RatingResponse,
    RatingUpdate,
    RatingWriteResult,
)

router = APIRouter(prefix="/ratings", tags=["ratings"])


@router.get("/{osu_id}", response_model=List[RatingResponse])
async def get_ratings_for_player(
    osu_id: int, service: RatingsServiceDep
) -> List[RatingResponse]:
    """Get a player's ratings by osu! user id; 404 when there are none."""
    return await service.get_for_player(osu_id)


@router.put("/{player_id}/update", response_model=RatingWriteResult)
async def update_rating_for_player(
    player_id: int,
    body: RatingUpdate,
    _: PrivilegedUserDep,
    service: RatingsServiceDep,
) -> RatingWriteResult:
    """Insert or update a player's rating for one ruleset."""
    if body.player_id != player_id:
        raise ValidationError(
            f"Player id {body.player_id} in body does not match "
            f"player id {player_id} in path",
            service="RatingsService",
            operation="insert_or_update",
            field="player_id",
        )
    return await service.insert_or_update(body)


@router.post("/batch", response_model=BatchRatingResult)
async def batch_insert_or_update(
    body: List[RatingUpdate],
    _: PrivilegedUserDep,
    service: RatingsServiceDep,
) -> BatchRatingResult:
    """Insert or update many ratings in one transaction."""
    return await service.batch_insert_or_update(body)
