"""Pydantic models for osu! API responses."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class OsuUserDTO(BaseModel):
    """User entry returned by ``get_user``.

    The API serializes every value as a string; pydantic coerces the
    numeric ones. ``pp_rank`` is null for players without a rank in the
    requested mode.
    """

    model_config = ConfigDict(extra="ignore")

    user_id: int
    username: str
    country: Optional[str] = None
    rank: Optional[int] = Field(default=None, alias="pp_rank")
    pp_raw: Optional[float] = None
    playcount: Optional[int] = None
