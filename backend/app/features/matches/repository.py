"""Repository pattern implementation for matches feature.

This module provides data access abstraction following Martin Fowler's Repository pattern,
encapsulating all database operations and providing a collection-like interface.

All three repositories share the request's session. Writes are only flushed;
``MatchRepositoryInterface.commit``/``rollback`` close the unit of work so
a whole batch lands in one transaction.
"""

from abc import ABC, abstractmethod
from typing import Iterable, Optional

import structlog
from sqlalchemy import and_, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import MatchVerificationStatus
from app.features.players.orm_models import PlayerORM
from .orm_models import (
    MatchDuplicateXRefORM,
    MatchORM,
    MatchPlayerORM,
    TournamentORM,
)

logger = structlog.get_logger(__name__)


class MatchRepositoryInterface(ABC):
    """Interface for match repository following Repository pattern.

    Provides collection-like semantics for accessing match domain objects.
    """

    @abstractmethod
    async def get(self, match_id: int) -> Optional[MatchORM]:
        """Get match by internal id.

        Args:
            match_id: Internal match id

        Returns:
            MatchORM if found, None otherwise
        """
        pass

    @abstractmethod
    async def get_by_match_id(self, osu_match_id: int) -> Optional[MatchORM]:
        """Get match by osu! lobby id."""
        pass

    @abstractmethod
    async def get_many(self, ids: Iterable[int]) -> list[MatchORM]:
        """Get matches by internal ids; unknown ids are ignored."""
        pass

    @abstractmethod
    async def get_by_match_ids(self, osu_match_ids: Iterable[int]) -> list[MatchORM]:
        """Get every match whose osu! lobby id is in ``osu_match_ids``."""
        pass

    @abstractmethod
    async def add_all(self, matches: list[MatchORM]) -> None:
        """Stage new matches in the current unit of work."""
        pass

    @abstractmethod
    async def get_all_ids(self, only_valid: bool = True) -> list[int]:
        """Get internal ids of all matches.

        Args:
            only_valid: Restrict to verified matches not merged into another

        Returns:
            Match ids in ascending order
        """
        pass

    @abstractmethod
    async def get_player_matches(self, osu_id: int) -> list[MatchORM]:
        """Get matches a player (by osu! user id) appeared in."""
        pass

    @abstractmethod
    async def count_player_matches(self, player_id: int, mode: int) -> int:
        """Count verified, unmerged matches in ``mode`` for a player (internal id)."""
        pass

    @abstractmethod
    async def get_osu_match_id(self, match_id: int) -> Optional[int]:
        """Map internal id to osu! lobby id."""
        pass

    @abstractmethod
    async def set_require_auto_check(self, invalid_only: bool) -> int:
        """Flag matches for the automated checker.

        Args:
            invalid_only: Only flag matches currently rejected

        Returns:
            Number of affected rows
        """
        pass

    @abstractmethod
    async def commit(self) -> None:
        """Commit the current unit of work."""
        pass

    @abstractmethod
    async def rollback(self) -> None:
        """Discard the current unit of work."""
        pass


class TournamentRepositoryInterface(ABC):
    """Interface for tournament repository."""

    @abstractmethod
    async def exists(self, name: str, mode: int) -> bool:
        """Whether a tournament with this (name, mode) pair exists."""
        pass

    @abstractmethod
    async def add(self, tournament: TournamentORM) -> TournamentORM:
        """Stage a tournament and assign its id."""
        pass


class DuplicateXRefRepositoryInterface(ABC):
    """Interface for suspected-duplicate cross references."""

    @abstractmethod
    async def get_all(self) -> list[MatchDuplicateXRefORM]:
        """Get every cross reference ordered by root."""
        pass

    @abstractmethod
    async def get_for_root(self, root_id: int) -> list[MatchDuplicateXRefORM]:
        """Get cross references pointing at ``root_id``."""
        pass


class SQLAlchemyMatchRepository(MatchRepositoryInterface):
    """SQLAlchemy implementation of match repository."""

    def __init__(self, db: AsyncSession):
        """Initialize repository with database session."""
        self.db = db

    async def get(self, match_id: int) -> Optional[MatchORM]:
        return await self.db.get(MatchORM, match_id)

    async def get_by_match_id(self, osu_match_id: int) -> Optional[MatchORM]:
        stmt = select(MatchORM).where(MatchORM.match_id == osu_match_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_many(self, ids: Iterable[int]) -> list[MatchORM]:
        ids = list(ids)
        if not ids:
            return []
        result = await self.db.execute(select(MatchORM).where(MatchORM.id.in_(ids)))
        return list(result.scalars().all())

    async def get_by_match_ids(self, osu_match_ids: Iterable[int]) -> list[MatchORM]:
        osu_match_ids = list(osu_match_ids)
        if not osu_match_ids:
            return []

        stmt = select(MatchORM).where(MatchORM.match_id.in_(osu_match_ids))
        result = await self.db.execute(stmt)
        matches = list(result.scalars().all())

        logger.debug(
            "existing_matches_found",
            requested=len(osu_match_ids),
            existing=len(matches),
        )
        return matches

    async def add_all(self, matches: list[MatchORM]) -> None:
        self.db.add_all(matches)
        await self.db.flush()

    async def get_all_ids(self, only_valid: bool = True) -> list[int]:
        stmt = select(MatchORM.id).order_by(MatchORM.id)
        if only_valid:
            stmt = stmt.where(
                and_(
                    MatchORM.verification_status
                    == int(MatchVerificationStatus.VERIFIED),
                    MatchORM.merged_into_id.is_(None),
                )
            )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_player_matches(self, osu_id: int) -> list[MatchORM]:
        stmt = (
            select(MatchORM)
            .join(MatchPlayerORM, MatchPlayerORM.match_id == MatchORM.id)
            .join(PlayerORM, PlayerORM.id == MatchPlayerORM.player_id)
            .where(PlayerORM.osu_id == osu_id)
            .order_by(MatchORM.start_time)
        )
        result = await self.db.execute(stmt)
        matches = list(result.scalars().all())

        logger.debug("matches_found_for_player", osu_id=osu_id, count=len(matches))
        return matches

    async def count_player_matches(self, player_id: int, mode: int) -> int:
        stmt = (
            select(func.count(MatchORM.id))
            .join(MatchPlayerORM, MatchPlayerORM.match_id == MatchORM.id)
            .where(
                MatchPlayerORM.player_id == player_id,
                MatchORM.mode == mode,
                MatchORM.verification_status == int(MatchVerificationStatus.VERIFIED),
                MatchORM.merged_into_id.is_(None),
            )
        )
        result = await self.db.execute(stmt)
        return result.scalar_one()

    async def get_osu_match_id(self, match_id: int) -> Optional[int]:
        result = await self.db.execute(
            select(MatchORM.match_id).where(MatchORM.id == match_id)
        )
        return result.scalar_one_or_none()

    async def set_require_auto_check(self, invalid_only: bool) -> int:
        stmt = update(MatchORM).values(needs_auto_check=True)
        if invalid_only:
            stmt = stmt.where(
                MatchORM.verification_status == int(MatchVerificationStatus.REJECTED)
            )
        result = await self.db.execute(stmt)
        return result.rowcount

    async def commit(self) -> None:
        await self.db.commit()

    async def rollback(self) -> None:
        await self.db.rollback()


class SQLAlchemyTournamentRepository(TournamentRepositoryInterface):
    """SQLAlchemy implementation of tournament repository."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def exists(self, name: str, mode: int) -> bool:
        stmt = select(TournamentORM.id).where(
            TournamentORM.name == name, TournamentORM.mode == mode
        )
        result = await self.db.execute(stmt.limit(1))
        return result.scalar_one_or_none() is not None

    async def add(self, tournament: TournamentORM) -> TournamentORM:
        self.db.add(tournament)
        await self.db.flush()
        logger.debug("tournament_staged", tournament_id=tournament.id)
        return tournament


class SQLAlchemyDuplicateXRefRepository(DuplicateXRefRepositoryInterface):
    """SQLAlchemy implementation of duplicate cross-reference repository."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_all(self) -> list[MatchDuplicateXRefORM]:
        stmt = select(MatchDuplicateXRefORM).order_by(
            MatchDuplicateXRefORM.suspected_duplicate_of, MatchDuplicateXRefORM.id
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_for_root(self, root_id: int) -> list[MatchDuplicateXRefORM]:
        stmt = (
            select(MatchDuplicateXRefORM)
            .where(MatchDuplicateXRefORM.suspected_duplicate_of == root_id)
            .order_by(MatchDuplicateXRefORM.id)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())
