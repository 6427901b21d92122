"""Transformers for converting between layers in matches feature.

- Batch submission → TournamentORM / MatchORM (creation)
- ORM models → Pydantic schemas (API responses)
- Duplicate cross references → grouped collections
"""

from typing import Dict, List, Mapping, Optional

import structlog

from app.core.enums import MatchVerificationSource, MatchVerificationStatus
from .orm_models import MatchDuplicateXRefORM, MatchORM, TournamentORM
from .schemas import (
    BatchSubmission,
    MatchDuplicate,
    MatchDuplicateCollection,
    MatchResponse,
)

logger = structlog.get_logger(__name__)


def submission_to_tournament(
    submission: BatchSubmission, submitter_user_id: Optional[int]
) -> TournamentORM:
    """Build the tournament row for a batch submission."""
    return TournamentORM(
        name=submission.tournament_name,
        abbreviation=submission.abbreviation,
        forum_url=submission.forum_post,
        rank_range_lower_bound=submission.rank_range_lower_bound,
        team_size=submission.team_size,
        mode=int(submission.mode),
        submitter_user_id=submitter_user_id,
    )


def new_match(
    osu_match_id: int,
    tournament: TournamentORM,
    submitter_user_id: Optional[int],
    source: Optional[MatchVerificationSource],
) -> MatchORM:
    """Build a freshly submitted match.

    :param source: Verification source; ``None`` for an unverified submission
    """
    verified = source is not None
    status = (
        MatchVerificationStatus.VERIFIED
        if verified
        else MatchVerificationStatus.PENDING_VERIFICATION
    )
    return MatchORM(
        match_id=osu_match_id,
        tournament_id=tournament.id,
        rank_range_lower_bound=tournament.rank_range_lower_bound,
        team_size=tournament.team_size,
        mode=tournament.mode,
        verification_status=int(status),
        verification_source=int(source) if verified else None,
        needs_auto_check=True,
        is_api_processed=False,
        submitter_user_id=submitter_user_id,
        verifier_user_id=submitter_user_id if verified else None,
    )


def match_orm_to_response(match: MatchORM) -> MatchResponse:
    """Transform MatchORM domain model to MatchResponse API schema.

    :param match: Match domain model from database
    :returns: Match response schema for API
    """
    return MatchResponse.model_validate(match)


def group_duplicates(
    xrefs: List[MatchDuplicateXRefORM], matches: Mapping[int, MatchORM]
) -> List[MatchDuplicateCollection]:
    """Group cross references by root match.

    References whose root or suspect is missing from ``matches`` are skipped.

    :param xrefs: Cross references, any order
    :param matches: Every referenced match keyed by internal id
    :returns: One collection per resolvable root, in first-seen order
    """
    collections: Dict[int, MatchDuplicateCollection] = {}
    for xref in xrefs:
        root = matches.get(xref.suspected_duplicate_of)
        suspect = matches.get(xref.match_id)
        if root is None or suspect is None:
            logger.warning(
                "duplicate_xref_unresolved",
                xref_id=xref.id,
                root_id=xref.suspected_duplicate_of,
                suspect_id=xref.match_id,
            )
            continue

        collection = collections.get(root.id)
        if collection is None:
            collection = MatchDuplicateCollection(
                id=root.id, name=root.name, osu_match_id=root.match_id
            )
            collections[root.id] = collection

        collection.suspected_duplicates.append(
            MatchDuplicate(
                match_id=suspect.id,
                osu_match_id=suspect.match_id,
                name=suspect.name,
                verified_by=xref.verified_by,
                verified_as_duplicate=xref.verified_as_duplicate,
                merged_at=xref.merged_at,
            )
        )
    return list(collections.values())
