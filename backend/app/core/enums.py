"""Shared enums used across features.

This module provides a single source of truth for enums used in both models and schemas.
Numeric values are the ones persisted in the database and exposed over the API.
"""

from enum import IntEnum


class Ruleset(IntEnum):
    """osu! game modes."""

    STANDARD = 0
    TAIKO = 1
    CATCH = 2
    MANIA = 3

    @property
    def api_name(self) -> str:
        """Name of the mode in osu! API and osu!track URLs."""
        return _RULESET_API_NAMES[self]


_RULESET_API_NAMES = {
    Ruleset.STANDARD: "osu",
    Ruleset.TAIKO: "taiko",
    Ruleset.CATCH: "fruits",
    Ruleset.MANIA: "mania",
}


class MatchVerificationStatus(IntEnum):
    """Lifecycle state of a submitted match."""

    VERIFIED = 0
    PENDING_VERIFICATION = 1
    REJECTED = 3

    @property
    def is_terminal(self) -> bool:
        """Verified and rejected matches accept no further manual transitions."""
        return self is not MatchVerificationStatus.PENDING_VERIFICATION


class MatchVerificationSource(IntEnum):
    """Actor class that verified a match."""

    SYSTEM = 0
    ADMIN = 1
    MATCH_VERIFIER = 2
