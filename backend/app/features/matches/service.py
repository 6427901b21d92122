"""Match service for ingestion, verification and duplicate resolution.

- Service layer is thin (orchestration only)
- All database queries delegated to the repositories
- State transitions live in domain models (MatchORM)

Write operations stage changes through the repositories and close the unit
of work once, so a batch is either fully committed or not at all.
"""

from typing import Dict, List, Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError

from app.core.clock import Clock, system_clock
from app.core.decorators import service_error_handler
from app.core.enums import MatchVerificationStatus
from app.core.exceptions import (
    DuplicateTournamentError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from app.features.auth.roles import resolve_verification_source
from app.features.auth.schemas import AuthenticatedUser
from .orm_models import MatchORM
from .repository import (
    DuplicateXRefRepositoryInterface,
    MatchRepositoryInterface,
    TournamentRepositoryInterface,
)
from .schemas import (
    BatchSubmission,
    BatchSubmissionResult,
    MatchDuplicateCollection,
    MatchResponse,
    VerificationUpdate,
    VerifyDuplicatesResult,
)
from .transformers import (
    group_duplicates,
    match_orm_to_response,
    new_match,
    submission_to_tournament,
)

logger = structlog.get_logger(__name__)


class MatchesService:
    """Service for match data operations (Thin Orchestration Layer).

    Responsibilities:
    - Orchestrate operations across the match, tournament and duplicate repositories
    - Validate inputs and translate persistence failures
    - Transform between domain models and API schemas

    Does NOT:
    - Execute SQL queries directly (delegated to repositories)
    - Decide which status transitions are legal (lives in MatchORM)
    """

    def __init__(
        self,
        repository: MatchRepositoryInterface,
        tournament_repository: TournamentRepositoryInterface,
        duplicate_repository: DuplicateXRefRepositoryInterface,
        clock: Optional[Clock] = None,
    ):
        """Initialize matches service with repositories.

        :param repository: Match repository; owns the unit of work
        :param tournament_repository: Tournament repository sharing its session
        :param duplicate_repository: Duplicate cross-reference repository
        :param clock: Time source for merge stamps
        """
        self.repository = repository
        self.tournament_repository = tournament_repository
        self.duplicate_repository = duplicate_repository
        self.clock = clock or system_clock

    # ========================================================================
    # INGESTION
    # ========================================================================

    @service_error_handler("MatchesService")
    async def submit_batch(
        self,
        submission: BatchSubmission,
        submitter: AuthenticatedUser,
        verified: bool,
    ) -> BatchSubmissionResult:
        """Ingest a batch of osu! lobby ids under a new tournament.

        Unverified submissions must name a (tournament, mode) pair that does
        not exist yet. Verified submissions always create a tournament and
        promote already-known matches to verified.

        :param submission: Tournament metadata and lobby ids
        :param submitter: Authenticated caller; recorded as submitter/verifier
        :param verified: Whether the caller submits pre-verified matches
        :returns: Tournament id and insert/update counts
        :raises ValidationError: If the id list is empty
        :raises DuplicateTournamentError: Unverified and the tournament exists
        :raises PersistenceError: If the batch could not be committed
        """
        osu_match_ids = list(dict.fromkeys(submission.ids))
        if not osu_match_ids:
            raise ValidationError(
                "At least one match id is required",
                service="MatchesService",
                operation="submit_batch",
                field="ids",
            )

        mode = int(submission.mode)
        if not verified and await self.tournament_repository.exists(
            submission.tournament_name, mode
        ):
            raise DuplicateTournamentError(
                submission.tournament_name, mode, service="MatchesService"
            )

        source = resolve_verification_source(submitter.roles, verified=verified)
        status = (
            MatchVerificationStatus.VERIFIED
            if verified
            else MatchVerificationStatus.PENDING_VERIFICATION
        )

        try:
            existing = await self.repository.get_by_match_ids(osu_match_ids)
            existing_ids = {match.match_id for match in existing}

            tournament = await self.tournament_repository.add(
                submission_to_tournament(submission, submitter.user_id)
            )

            updated = 0
            if verified:
                for match in existing:
                    match.apply_verified_submission(
                        source, submitter.user_id, tournament
                    )
                    updated += 1

            new_matches = [
                new_match(osu_match_id, tournament, submitter.user_id, source)
                for osu_match_id in osu_match_ids
                if osu_match_id not in existing_ids
            ]
            if new_matches:
                await self.repository.add_all(new_matches)

            await self.repository.commit()
        except SQLAlchemyError as e:
            await self.repository.rollback()
            raise PersistenceError(
                "Failed to persist match batch",
                service="MatchesService",
                operation="submit_batch",
                context={"tournament_name": submission.tournament_name},
                original_error=e,
            ) from e

        logger.info(
            "Match batch submitted",
            tournament_id=tournament.id,
            inserted=len(new_matches),
            updated=updated,
            skipped=len(existing) - updated,
            verified=verified,
        )
        return BatchSubmissionResult(
            tournament_id=tournament.id,
            inserted=len(new_matches),
            updated=updated,
            verification_status=status,
        )

    # ========================================================================
    # VERIFICATION
    # ========================================================================

    @service_error_handler("MatchesService")
    async def update_verification_status(
        self, match_id: int, update: VerificationUpdate, actor: AuthenticatedUser
    ) -> MatchResponse:
        """Apply a manual verification decision to a pending match.

        :raises NotFoundError: If the match does not exist
        :raises InvalidStateTransitionError: If the match is not pending
        """
        match = await self._require(match_id, "update_verification_status")
        match.transition_to(
            update.status,
            verifier_user_id=actor.user_id,
            source=resolve_verification_source(actor.roles),
            info=update.info,
        )
        await self._commit("update_verification_status")

        logger.info(
            "Match verification status updated",
            match_id=match.id,
            status=update.status.name,
            verifier_user_id=actor.user_id,
        )
        return match_orm_to_response(match)

    @service_error_handler("MatchesService")
    async def refresh_automation_checks(self, invalid_only: bool) -> int:
        """Re-arm the automated checker for all or only rejected matches.

        Verification status is left untouched.

        :returns: Number of matches flagged
        """
        affected = await self.repository.set_require_auto_check(invalid_only)
        await self._commit("refresh_automation_checks")

        logger.info(
            "Automation checks re-armed", invalid_only=invalid_only, affected=affected
        )
        return affected

    # ========================================================================
    # DUPLICATES
    # ========================================================================

    @service_error_handler("MatchesService")
    async def get_all_duplicates(self) -> List[MatchDuplicateCollection]:
        """Get suspected duplicates grouped by root match."""
        xrefs = await self.duplicate_repository.get_all()
        referenced = {xref.match_id for xref in xrefs} | {
            xref.suspected_duplicate_of for xref in xrefs
        }
        matches = await self.repository.get_many(referenced)
        return group_duplicates(xrefs, {match.id: match for match in matches})

    @service_error_handler("MatchesService")
    async def verify_duplicates(
        self, root_id: int, verifier_user_id: int, confirmed: bool
    ) -> VerifyDuplicatesResult:
        """Record a verifier's decision on every suspect of ``root_id``.

        A confirmation merges the confirmed suspects into the root; a denial
        leaves them denied and unmerged.

        :raises NotFoundError: If the root match does not exist
        """
        await self._require(root_id, "verify_duplicates")

        xrefs = await self.duplicate_repository.get_for_root(root_id)
        for xref in xrefs:
            xref.verified_by = verifier_user_id
            xref.verified_as_duplicate = confirmed

        merged = 0
        if confirmed:
            merged = await self.merge_duplicates(root_id, commit=False)

        await self._commit("verify_duplicates")

        logger.info(
            "Duplicate group verified",
            root_id=root_id,
            confirmed=confirmed,
            marked=len(xrefs),
            merged=merged,
        )
        return VerifyDuplicatesResult(root_id=root_id, marked=len(xrefs), merged=merged)

    @service_error_handler("MatchesService")
    async def merge_duplicates(self, root_id: int, commit: bool = True) -> int:
        """Fold confirmed, not yet merged duplicates into the root match.

        Suspect rows are kept and marked as merged; already merged
        references are skipped.

        :param root_id: Internal id of the root match
        :param commit: Close the unit of work when done
        :returns: Number of duplicates newly merged
        :raises NotFoundError: If the root match does not exist
        """
        root = await self._require(root_id, "merge_duplicates")

        pending = [
            xref
            for xref in await self.duplicate_repository.get_for_root(root_id)
            if xref.is_pending_merge
        ]
        suspects: Dict[int, MatchORM] = {
            match.id: match
            for match in await self.repository.get_many(x.match_id for x in pending)
        }

        merged = 0
        now = self.clock.now()
        for xref in pending:
            suspect = suspects.get(xref.match_id)
            if suspect is None or suspect.id == root.id:
                logger.warning(
                    "Skipping unresolvable duplicate",
                    root_id=root_id,
                    suspect_id=xref.match_id,
                )
                continue
            root.absorb(suspect)
            xref.merged_at = now
            merged += 1

        if commit:
            await self._commit("merge_duplicates")

        if merged:
            logger.info("Duplicates merged", root_id=root_id, merged=merged)
        return merged

    # ========================================================================
    # QUERIES
    # ========================================================================

    @service_error_handler("MatchesService")
    async def get(self, match_id: int) -> MatchResponse:
        """Get a match by internal id.

        :raises NotFoundError: If the match does not exist
        """
        return match_orm_to_response(await self._require(match_id, "get"))

    @service_error_handler("MatchesService")
    async def get_by_osu_id(self, osu_match_id: int) -> MatchResponse:
        """Get a match by osu! lobby id.

        :raises NotFoundError: If no match has this lobby id
        """
        match = await self.repository.get_by_match_id(osu_match_id)
        if match is None:
            raise NotFoundError(
                message=f"No match with osu! id {osu_match_id}",
                service="MatchesService",
                operation="get_by_osu_id",
            )
        return match_orm_to_response(match)

    @service_error_handler("MatchesService")
    async def get_all_ids(self, only_valid: bool = True) -> List[int]:
        """Get ids of matches; by default only those eligible for rating."""
        return await self.repository.get_all_ids(only_valid)

    @service_error_handler("MatchesService")
    async def get_player_matches(self, osu_id: int) -> List[MatchResponse]:
        """Get matches a player appeared in."""
        matches = await self.repository.get_player_matches(osu_id)
        return [match_orm_to_response(match) for match in matches]

    @service_error_handler("MatchesService")
    async def get_osu_match_id(self, match_id: int) -> int:
        """Map internal id to osu! lobby id.

        :raises NotFoundError: If the id is unknown
        """
        osu_match_id = await self.repository.get_osu_match_id(match_id)
        if osu_match_id is None:
            raise NotFoundError(
                message=f"No match with id {match_id}",
                service="MatchesService",
                operation="get_osu_match_id",
            )
        return osu_match_id

    # ========================================================================
    # HELPERS
    # ========================================================================

    async def _require(self, match_id: int, operation: str) -> MatchORM:
        match = await self.repository.get(match_id)
        if match is None:
            raise NotFoundError(
                message=f"No match with id {match_id}",
                service="MatchesService",
                operation=operation,
                context={"match_id": match_id},
            )
        return match

    async def _commit(self, operation: str) -> None:
        try:
            await self.repository.commit()
        except SQLAlchemyError as e:
            await self.repository.rollback()
            raise PersistenceError(
                "Failed to commit changes",
                service="MatchesService",
                operation=operation,
                original_error=e,
            ) from e
