"""Pydantic schemas for the logged-in user's views."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from app.core.enums import Ruleset
from app.features.ratings.schemas import RatingHistoryResponse, RatingResponse


class MeResponse(BaseModel):
    """Identity of the logged-in user and the linked player."""

    id: int = Field(..., description="Internal player id")
    user_id: int
    osu_id: int
    osu_country: Optional[str] = None
    osu_play_mode: Ruleset = Ruleset.STANDARD
    username: Optional[str] = None
    roles: List[str] = Field(default_factory=list)


class PlayerStatsResponse(BaseModel):
    """Rating summary of the logged-in player in one ruleset."""

    player_id: int
    mode: Ruleset
    date_min: Optional[datetime] = None
    date_max: Optional[datetime] = None
    rating: Optional[RatingResponse] = None
    history: List[RatingHistoryResponse] = Field(default_factory=list)
    match_count: int = 0
