"""Pydantic schemas for the players feature."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class PlayerResponse(BaseModel):
    """Schema for player response data."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="Internal player id")
    osu_id: int = Field(..., description="osu! user id")
    username: Optional[str] = None
    country: Optional[str] = None
    rank_standard: Optional[int] = None
    rank_taiko: Optional[int] = None
    rank_catch: Optional[int] = None
    rank_mania: Optional[int] = None
    earliest_osu_global_rank: Optional[int] = None
    earliest_osu_global_rank_date: Optional[datetime] = None
    earliest_taiko_global_rank: Optional[int] = None
    earliest_taiko_global_rank_date: Optional[datetime] = None
    earliest_catch_global_rank: Optional[int] = None
    earliest_catch_global_rank_date: Optional[datetime] = None
    earliest_mania_global_rank: Optional[int] = None
    earliest_mania_global_rank_date: Optional[datetime] = None
    created: datetime
    updated: Optional[datetime] = None


class PlayerRankSnapshot(BaseModel):
    """Rank data for one player in one mode as reported by osu!."""

    rank: Optional[int] = Field(None, description="Global rank; None when unranked")
    username: str
    country: Optional[str] = None
