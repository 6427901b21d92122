"""Pydantic schemas for the matches feature."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.enums import (
    MatchVerificationSource,
    MatchVerificationStatus,
    Ruleset,
)


class BatchSubmission(BaseModel):
    """A batch of osu! lobby ids submitted under one tournament."""

    tournament_name: str = Field(..., min_length=1, max_length=512)
    abbreviation: Optional[str] = Field(None, max_length=32)
    forum_post: Optional[str] = Field(
        None, max_length=255, description="osu! forum post for the tournament"
    )
    rank_range_lower_bound: int = Field(..., ge=1)
    team_size: int = Field(..., ge=1, le=8)
    mode: Ruleset = Field(..., description="Ruleset value (0-3)")
    ids: List[int] = Field(..., description="osu! multiplayer lobby ids")

    @field_validator("ids")
    @classmethod
    def ids_must_be_positive(cls, v: List[int]) -> List[int]:
        """Reject non-positive lobby ids."""
        if any(match_id <= 0 for match_id in v):
            raise ValueError("Match ids must be positive integers")
        return v


class BatchSubmissionResult(BaseModel):
    """Outcome of a batch submission."""

    tournament_id: int
    inserted: int = Field(..., description="Newly created matches")
    updated: int = Field(..., description="Existing matches promoted to verified")
    verification_status: MatchVerificationStatus


class MatchResponse(BaseModel):
    """Schema for match response data."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    match_id: int = Field(..., description="osu! multiplayer lobby id")
    name: Optional[str] = None
    tournament_id: int
    rank_range_lower_bound: Optional[int] = None
    team_size: Optional[int] = None
    mode: Optional[Ruleset] = None
    verification_status: MatchVerificationStatus
    verification_source: Optional[MatchVerificationSource] = None
    verification_info: Optional[str] = None
    needs_auto_check: bool
    is_api_processed: bool
    submitter_user_id: Optional[int] = None
    verifier_user_id: Optional[int] = None
    merged_into_id: Optional[int] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None


class MatchDuplicate(BaseModel):
    """One suspected duplicate of a root match."""

    match_id: int = Field(..., description="Internal id of the suspect")
    osu_match_id: int
    name: Optional[str] = None
    verified_by: Optional[int] = None
    verified_as_duplicate: Optional[bool] = None
    merged_at: Optional[datetime] = None


class MatchDuplicateCollection(BaseModel):
    """A root match with every match suspected to duplicate it."""

    id: int = Field(..., description="Internal id of the root match")
    name: Optional[str] = None
    osu_match_id: int
    suspected_duplicates: List[MatchDuplicate] = Field(default_factory=list)


class VerifyDuplicatesRequest(BaseModel):
    """Verifier decision on a duplicate group."""

    root_id: int = Field(..., description="Internal id of the root match")
    confirmed: bool


class VerifyDuplicatesResult(BaseModel):
    """Outcome of a duplicate-group decision."""

    root_id: int
    marked: int = Field(..., description="Cross references updated")
    merged: int = Field(..., description="Duplicates newly merged into the root")


class VerificationUpdate(BaseModel):
    """Manual verification decision for one match."""

    status: MatchVerificationStatus
    info: Optional[str] = Field(None, max_length=512)


class RefreshResult(BaseModel):
    """Outcome of re-arming automated checks."""

    affected: int
