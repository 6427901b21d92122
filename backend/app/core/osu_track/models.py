"""Pydantic models for osu!track responses."""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator


class OsuTrackHistoryStats(BaseModel):
    """One snapshot from ``/stats_history``, ordered oldest first by the API."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    rank: int = Field(alias="pp_rank")
    timestamp: datetime
    pp_raw: Optional[float] = None
    playcount: Optional[int] = None
    accuracy: Optional[float] = None
    level: Optional[float] = None

    @field_validator("timestamp")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        """osu!track timestamps are UTC but sent without an offset."""
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


stats_history_adapter = TypeAdapter(List[OsuTrackHistoryStats])
