"""Endpoints describing the logged-in user."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Query

from app.core.enums import Ruleset
from app.features.auth.dependencies import CurrentUserDep
from .dependencies import MeServiceDep
from .schemas import MeResponse, PlayerStatsResponse

router = APIRouter(prefix="/me", tags=["me"])


@router.get("", response_model=MeResponse)
async def get_me(current_user: CurrentUserDep, service: MeServiceDep) -> MeResponse:
    """Get the logged-in user."""
    return await service.get_me(current_user)


@router.get("/stats", response_model=PlayerStatsResponse)
async def get_my_stats(
    current_user: CurrentUserDep,
    service: MeServiceDep,
    mode: Ruleset = Query(Ruleset.STANDARD),
    date_min: Optional[datetime] = Query(None),
    date_max: Optional[datetime] = Query(None),
) -> PlayerStatsResponse:
    """Get the logged-in player's rating summary for a ruleset."""
    return await service.get_stats(current_user, mode, date_min, date_max)
