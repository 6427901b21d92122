"""SQLAlchemy 2.0 ORM models for the rating ledger (Rich Domain Model pattern).

``RatingORM`` holds the current skill estimate per (player, mode).
``RatingHistoryORM`` rows are append-only; each one captures the estimate a
rating held at the moment it was written.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    DateTime as SQLDateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.core.models import Base


class RatingORM(Base):
    """Current rating of one player in one ruleset."""

    __tablename__ = "ratings"
    __table_args__ = (
        UniqueConstraint("player_id", "mode"),
        {"schema": "core"},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    player_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("core.players.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    mode: Mapped[int] = mapped_column(
        Integer, nullable=False, comment="Ruleset value (0-3)"
    )

    mu: Mapped[float] = mapped_column(Float, nullable=False)
    sigma: Mapped[float] = mapped_column(Float, nullable=False)

    mu_initial: Mapped[float] = mapped_column(
        Float, nullable=False, comment="Estimate when the rating was first created"
    )
    sigma_initial: Mapped[float] = mapped_column(Float, nullable=False)

    created: Mapped[datetime] = mapped_column(
        SQLDateTime(timezone=True), nullable=False, server_default=func.now()
    )

    updated: Mapped[Optional[datetime]] = mapped_column(
        SQLDateTime(timezone=True), nullable=True
    )

    @classmethod
    def initial(cls, player_id: int, mode: int, mu: float, sigma: float) -> "RatingORM":
        """Create a first rating; the initial estimate equals the given one."""
        return cls(
            player_id=player_id,
            mode=mode,
            mu=mu,
            sigma=sigma,
            mu_initial=mu,
            sigma_initial=sigma,
        )

    def snapshot(self, match_id: Optional[int] = None) -> "RatingHistoryORM":
        """Capture the current estimate as a history row."""
        return RatingHistoryORM(
            player_id=self.player_id,
            mode=self.mode,
            mu=self.mu,
            sigma=self.sigma,
            match_id=match_id,
        )

    def apply(self, mu: float, sigma: float, now: datetime) -> None:
        """Overwrite the current estimate."""
        self.mu = mu
        self.sigma = sigma
        self.updated = now

    def __repr__(self) -> str:
        return (
            f"<RatingORM(player_id={self.player_id}, mode={self.mode}, "
            f"mu={self.mu}, sigma={self.sigma})>"
        )


class RatingHistoryORM(Base):
    """Immutable past rating of a player in a ruleset."""

    __tablename__ = "rating_histories"
    __table_args__ = (
        Index("idx_rating_histories_player_mode_created", "player_id", "mode", "created"),
        {"schema": "core"},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    player_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("core.players.id", ondelete="CASCADE"),
        nullable=False,
    )

    match_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("core.matches.id", ondelete="SET NULL"),
        nullable=True,
        comment="Match whose processing produced this update",
    )

    mode: Mapped[int] = mapped_column(Integer, nullable=False)

    mu: Mapped[float] = mapped_column(Float, nullable=False)
    sigma: Mapped[float] = mapped_column(Float, nullable=False)

    created: Mapped[datetime] = mapped_column(
        SQLDateTime(timezone=True), nullable=False, server_default=func.now()
    )
