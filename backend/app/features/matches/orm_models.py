"""SQLAlchemy 2.0 ORM models for the matches feature (Rich Domain Model pattern).

Relations are plain foreign-key id columns. Services fetch related rows
through repositories instead of navigating an object graph.

The verification state machine lives on ``MatchORM``:

    PendingVerification ──▶ Verified
            │
            └────────────▶ Rejected

Verified and Rejected are terminal for manual transitions. Batch
re-submission by a verifier is the one path that may promote any match
to Verified.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime as SQLDateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.core.enums import MatchVerificationSource, MatchVerificationStatus
from app.core.exceptions import InvalidStateTransitionError
from app.core.models import Base


class TournamentORM(Base):
    """A named group of matches submitted together."""

    __tablename__ = "tournaments"
    __table_args__ = (
        Index("idx_tournaments_name_mode", "name", "mode"),
        {"schema": "core"},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(
        String(512), nullable=False, comment="Full tournament name"
    )

    abbreviation: Mapped[Optional[str]] = mapped_column(
        String(32), nullable=True, comment="Short tournament acronym"
    )

    forum_url: Mapped[Optional[str]] = mapped_column(
        String(255), nullable=True, comment="osu! forum post for the tournament"
    )

    rank_range_lower_bound: Mapped[int] = mapped_column(
        Integer, nullable=False, comment="Best rank allowed to enter"
    )

    team_size: Mapped[int] = mapped_column(Integer, nullable=False)

    mode: Mapped[int] = mapped_column(
        Integer, nullable=False, comment="Ruleset value (0-3)"
    )

    submitter_user_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("auth.users.id"), nullable=True
    )

    created: Mapped[datetime] = mapped_column(
        SQLDateTime(timezone=True), nullable=False, server_default=func.now()
    )

    updated: Mapped[Optional[datetime]] = mapped_column(
        SQLDateTime(timezone=True), nullable=True, onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<TournamentORM(id={self.id}, name='{self.name}', mode={self.mode})>"


class MatchORM(Base):
    """One externally sourced multiplayer lobby."""

    __tablename__ = "matches"
    __table_args__ = (
        Index("idx_matches_verification_status", "verification_status"),
        Index("idx_matches_needs_auto_check", "needs_auto_check"),
        {"schema": "core"},
    )

    # ========================================================================
    # DATABASE FIELDS
    # ========================================================================

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    match_id: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        unique=True,
        index=True,
        comment="osu! multiplayer lobby id",
    )

    name: Mapped[Optional[str]] = mapped_column(
        String(512), nullable=True, comment="Lobby title"
    )

    tournament_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("core.tournaments.id"),
        nullable=False,
        index=True,
    )

    rank_range_lower_bound: Mapped[Optional[int]] = mapped_column(
        Integer, nullable=True
    )

    team_size: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    mode: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    verification_status: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=int(MatchVerificationStatus.PENDING_VERIFICATION),
        comment="MatchVerificationStatus value",
    )

    verification_source: Mapped[Optional[int]] = mapped_column(
        Integer, nullable=True, comment="MatchVerificationSource value"
    )

    verification_info: Mapped[Optional[str]] = mapped_column(
        String(512), nullable=True, comment="Free-text note from verification"
    )

    needs_auto_check: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        comment="Queue for the automated checker's next pass",
    )

    is_api_processed: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        comment="Whether lobby data has been fetched from osu!",
    )

    submitter_user_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("auth.users.id"), nullable=True
    )

    verifier_user_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("auth.users.id"), nullable=True
    )

    merged_into_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("core.matches.id"),
        nullable=True,
        comment="Root match this confirmed duplicate was merged into",
    )

    start_time: Mapped[Optional[datetime]] = mapped_column(
        SQLDateTime(timezone=True), nullable=True
    )

    end_time: Mapped[Optional[datetime]] = mapped_column(
        SQLDateTime(timezone=True), nullable=True
    )

    created: Mapped[datetime] = mapped_column(
        SQLDateTime(timezone=True), nullable=False, server_default=func.now()
    )

    updated: Mapped[Optional[datetime]] = mapped_column(
        SQLDateTime(timezone=True), nullable=True, onupdate=func.now()
    )

    # ========================================================================
    # DOMAIN BEHAVIOR
    # ========================================================================

    @property
    def status(self) -> MatchVerificationStatus:
        """Verification status as enum member."""
        return MatchVerificationStatus(self.verification_status)

    @property
    def is_merged(self) -> bool:
        """Whether this match was absorbed into another match."""
        return self.merged_into_id is not None

    def queue_for_processing(self) -> None:
        """Ask the automated checker to (re)fetch and (re)evaluate this match."""
        self.needs_auto_check = True
        self.is_api_processed = False

    def apply_verified_submission(
        self,
        source: MatchVerificationSource,
        user_id: Optional[int],
        tournament: TournamentORM,
    ) -> None:
        """Promote this match as part of a verified batch re-submission.

        Any prior status is overridden.
        """
        self.verification_status = int(MatchVerificationStatus.VERIFIED)
        self.verification_source = int(source)
        self.verifier_user_id = user_id
        self.submitter_user_id = user_id
        self.tournament_id = tournament.id
        self.rank_range_lower_bound = tournament.rank_range_lower_bound
        self.team_size = tournament.team_size
        self.mode = tournament.mode
        self.queue_for_processing()

    def can_transition_to(self, target: MatchVerificationStatus) -> bool:
        """Whether a manual transition from the current status is allowed."""
        return (
            self.status is MatchVerificationStatus.PENDING_VERIFICATION
            and target is not MatchVerificationStatus.PENDING_VERIFICATION
        )

    def transition_to(
        self,
        target: MatchVerificationStatus,
        verifier_user_id: Optional[int],
        source: Optional[MatchVerificationSource],
        info: Optional[str] = None,
    ) -> None:
        """Apply a manual verification decision.

        :raises InvalidStateTransitionError: If the match is not pending or
            ``target`` is pending
        """
        target = MatchVerificationStatus(target)
        if not self.can_transition_to(target):
            raise InvalidStateTransitionError(
                current=self.status.name,
                requested=target.name,
                service="MatchesService",
                context={"match_id": self.match_id},
            )

        self.verification_status = int(target)
        self.verifier_user_id = verifier_user_id
        if info is not None:
            self.verification_info = info
        if target is MatchVerificationStatus.VERIFIED:
            self.verification_source = int(source) if source is not None else None
            self.queue_for_processing()

    def absorb(self, duplicate: "MatchORM") -> None:
        """Fold a confirmed duplicate's lobby metadata into this (root) match.

        The duplicate keeps its row; it is only marked as merged. The root is
        re-queued so its statistics are rebuilt including the absorbed data.
        """
        if not self.name and duplicate.name:
            self.name = duplicate.name
        if duplicate.start_time is not None and (
            self.start_time is None or duplicate.start_time < self.start_time
        ):
            self.start_time = duplicate.start_time
        if duplicate.end_time is not None and (
            self.end_time is None or duplicate.end_time > self.end_time
        ):
            self.end_time = duplicate.end_time

        duplicate.merged_into_id = self.id
        duplicate.needs_auto_check = False
        self.queue_for_processing()

    def __repr__(self) -> str:
        return (
            f"<MatchORM(id={self.id}, match_id={self.match_id}, "
            f"status={self.verification_status})>"
        )


class MatchDuplicateXRefORM(Base):
    """Suspicion that ``match_id`` duplicates the root ``suspected_duplicate_of``."""

    __tablename__ = "match_duplicate_xref"
    __table_args__ = (
        UniqueConstraint("match_id", "suspected_duplicate_of"),
        {"schema": "core"},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    match_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("core.matches.id"),
        nullable=False,
        comment="Suspected duplicate (internal id)",
    )

    osu_match_id: Mapped[int] = mapped_column(
        BigInteger, nullable=False, comment="osu! lobby id of the suspect"
    )

    suspected_duplicate_of: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("core.matches.id"),
        nullable=False,
        index=True,
        comment="Root match (internal id)",
    )

    verified_by: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("auth.users.id"), nullable=True
    )

    verified_as_duplicate: Mapped[Optional[bool]] = mapped_column(
        Boolean,
        nullable=True,
        comment="None = unreviewed, True = confirmed, False = denied",
    )

    merged_at: Mapped[Optional[datetime]] = mapped_column(
        SQLDateTime(timezone=True),
        nullable=True,
        comment="When the confirmed duplicate was merged into its root",
    )

    created: Mapped[datetime] = mapped_column(
        SQLDateTime(timezone=True), nullable=False, server_default=func.now()
    )

    updated: Mapped[Optional[datetime]] = mapped_column(
        SQLDateTime(timezone=True), nullable=True, onupdate=func.now()
    )

    @property
    def is_pending_merge(self) -> bool:
        """Confirmed but not yet merged."""
        return self.verified_as_duplicate is True and self.merged_at is None


class MatchPlayerORM(Base):
    """A player's appearance in a match.

    Rows are written by the lobby processor once a match's games are fetched;
    request handlers only read them.
    """

    __tablename__ = "match_players"
    __table_args__ = (
        UniqueConstraint("match_id", "player_id"),
        Index("idx_match_players_player", "player_id"),
        {"schema": "core"},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    match_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("core.matches.id", ondelete="CASCADE"),
        nullable=False,
    )

    player_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("core.players.id", ondelete="CASCADE"),
        nullable=False,
    )

    created: Mapped[datetime] = mapped_column(
        SQLDateTime(timezone=True), nullable=False, server_default=func.now()
    )
