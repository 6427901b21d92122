"""Pydantic schemas for the rating ledger."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.core.enums import Ruleset


class RatingUpdate(BaseModel):
    """New estimate for one player in one ruleset."""

    player_id: int = Field(..., description="Internal player id")
    mode: Ruleset = Ruleset.STANDARD
    mu: float
    sigma: float = Field(..., ge=0)
    match_id: Optional[int] = Field(
        None, description="Internal id of the match that produced the update"
    )


class RatingResponse(BaseModel):
    """Schema for rating response data."""

    model_config = ConfigDict(from_attributes=True)

    player_id: int
    mode: Ruleset
    mu: float
    sigma: float
    mu_initial: float
    sigma_initial: float
    created: Optional[datetime] = None
    updated: Optional[datetime] = None


class RatingHistoryResponse(BaseModel):
    """Schema for one rating history entry."""

    model_config = ConfigDict(from_attributes=True)

    player_id: int
    match_id: Optional[int] = None
    mode: Ruleset
    mu: float
    sigma: float
    created: Optional[datetime] = None


class BatchRatingResult(BaseModel):
    """Outcome of a batch rating write."""

    written: int
    history_rows: int


class RatingWriteResult(BaseModel):
    """Outcome of a single rating write."""

    rating: RatingResponse
    created: bool = Field(..., description="Whether the rating was newly inserted")

