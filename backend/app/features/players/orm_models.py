"""SQLAlchemy 2.0 ORM models for players feature with Rich Domain Model pattern.

A player row is keyed internally by a surrogate id and externally by the
osu! user id. Per-mode rank columns are accessed through ``rank_for`` /
``set_rank`` so callers never switch over modes themselves.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    BigInteger,
    DateTime as SQLDateTime,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.core.enums import Ruleset
from app.core.models import Base

_RANK_COLUMNS = {
    Ruleset.STANDARD: "rank_standard",
    Ruleset.TAIKO: "rank_taiko",
    Ruleset.CATCH: "rank_catch",
    Ruleset.MANIA: "rank_mania",
}

_EARLIEST_RANK_COLUMNS = {
    Ruleset.STANDARD: ("earliest_osu_global_rank", "earliest_osu_global_rank_date"),
    Ruleset.TAIKO: ("earliest_taiko_global_rank", "earliest_taiko_global_rank_date"),
    Ruleset.CATCH: ("earliest_catch_global_rank", "earliest_catch_global_rank_date"),
    Ruleset.MANIA: ("earliest_mania_global_rank", "earliest_mania_global_rank_date"),
}


class PlayerORM(Base):
    """Player domain model (Rich Domain Model pattern).

    Combines data and behavior:
    - Database fields with type safety (SQLAlchemy 2.0 Mapped types)
    - Per-mode rank accessors used by the sync workers
    - Staleness rule deciding when a refresh is due
    """

    __tablename__ = "players"
    __table_args__ = {"schema": "core"}

    # ========================================================================
    # DATABASE FIELDS
    # ========================================================================

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
        comment="Internal surrogate id",
    )

    osu_id: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        unique=True,
        index=True,
        comment="osu! user id",
    )

    username: Mapped[Optional[str]] = mapped_column(
        String(32),
        nullable=True,
        comment="Current osu! username (can change)",
    )

    country: Mapped[Optional[str]] = mapped_column(
        String(4),
        nullable=True,
        comment="ISO country code reported by osu!",
    )

    # Current global ranks
    rank_standard: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    rank_taiko: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    rank_catch: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    rank_mania: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Earliest known global ranks (backfilled from osu!track)
    earliest_osu_global_rank: Mapped[Optional[int]] = mapped_column(
        Integer, nullable=True, comment="Earliest known standard rank"
    )
    earliest_osu_global_rank_date: Mapped[Optional[datetime]] = mapped_column(
        SQLDateTime(timezone=True),
        nullable=True,
        index=True,
        comment="When the earliest ranks were backfilled or observed; null means never",
    )
    earliest_taiko_global_rank: Mapped[Optional[int]] = mapped_column(
        Integer, nullable=True
    )
    earliest_taiko_global_rank_date: Mapped[Optional[datetime]] = mapped_column(
        SQLDateTime(timezone=True), nullable=True
    )
    earliest_catch_global_rank: Mapped[Optional[int]] = mapped_column(
        Integer, nullable=True
    )
    earliest_catch_global_rank_date: Mapped[Optional[datetime]] = mapped_column(
        SQLDateTime(timezone=True), nullable=True
    )
    earliest_mania_global_rank: Mapped[Optional[int]] = mapped_column(
        Integer, nullable=True
    )
    earliest_mania_global_rank_date: Mapped[Optional[datetime]] = mapped_column(
        SQLDateTime(timezone=True), nullable=True
    )

    # Timestamps
    created: Mapped[datetime] = mapped_column(
        SQLDateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        comment="When this player record was first created",
    )

    updated: Mapped[Optional[datetime]] = mapped_column(
        SQLDateTime(timezone=True),
        nullable=True,
        index=True,
        comment="When osu! data was last synced; null means never",
    )

    # ========================================================================
    # DOMAIN BEHAVIOR
    # ========================================================================

    def rank_for(self, mode: Ruleset) -> Optional[int]:
        """Current global rank in ``mode``."""
        return getattr(self, _RANK_COLUMNS[Ruleset(mode)])

    def set_rank(self, mode: Ruleset, rank: Optional[int]) -> None:
        """Store the current global rank for ``mode``."""
        setattr(self, _RANK_COLUMNS[Ruleset(mode)], rank)

    def earliest_rank_for(self, mode: Ruleset) -> Optional[int]:
        """Earliest known global rank in ``mode``."""
        rank_column, _ = _EARLIEST_RANK_COLUMNS[Ruleset(mode)]
        return getattr(self, rank_column)

    def earliest_rank_date_for(self, mode: Ruleset) -> Optional[datetime]:
        """When the earliest known rank in ``mode`` was observed."""
        _, date_column = _EARLIEST_RANK_COLUMNS[Ruleset(mode)]
        return getattr(self, date_column)

    def set_earliest_rank(
        self, mode: Ruleset, rank: Optional[int], observed_at: datetime
    ) -> None:
        """Store the earliest known rank for ``mode`` and when it was observed."""
        rank_column, date_column = _EARLIEST_RANK_COLUMNS[Ruleset(mode)]
        setattr(self, rank_column, rank)
        setattr(self, date_column, observed_at)

    def seed_earliest_known_ranks(self, now: datetime) -> None:
        """Use the current rank as earliest known rank wherever none is recorded."""
        for mode in Ruleset:
            if self.earliest_rank_for(mode) is None:
                self.set_earliest_rank(mode, self.rank_for(mode), now)

    def is_outdated(self, cutoff: datetime) -> bool:
        """Whether the last sync happened before ``cutoff`` (or never)."""
        if self.updated is None:
            return True
        updated = self.updated
        if updated.tzinfo is None:
            updated = updated.replace(tzinfo=timezone.utc)
        return updated < cutoff

    def mark_synced(self, now: datetime) -> None:
        """Stamp the sync time."""
        self.updated = now

    def __repr__(self) -> str:
        """Return string representation of the player."""
        return f"<PlayerORM(id={self.id}, osu_id={self.osu_id}, username='{self.username}')>"
