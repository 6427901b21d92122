"""Role set carried by authenticated callers and what it grants."""

from enum import Enum
from typing import AbstractSet, Iterable, Optional, FrozenSet

from app.core.enums import MatchVerificationSource


class Role(str, Enum):
    """Roles stored on a user and copied into access tokens."""

    USER = "user"
    SUBMIT = "submit"
    VERIFIER = "verifier"
    ADMIN = "admin"
    SYSTEM = "system"


VERIFICATION_ROLES: FrozenSet[Role] = frozenset(
    {Role.VERIFIER, Role.ADMIN, Role.SYSTEM}
)
PRIVILEGED_ROLES: FrozenSet[Role] = frozenset({Role.ADMIN, Role.SYSTEM})


def parse_roles(values: Iterable[str]) -> FrozenSet[Role]:
    """Parse role names, ignoring unknown ones and case."""
    roles = set()
    for value in values:
        try:
            roles.add(Role(value.strip().lower()))
        except ValueError:
            continue
    return frozenset(roles)


def can_verify(roles: AbstractSet[Role]) -> bool:
    """Whether the role set may submit pre-verified matches or review duplicates."""
    return bool(roles & VERIFICATION_ROLES)


def resolve_verification_source(
    roles: AbstractSet[Role], verified: bool = True
) -> Optional[MatchVerificationSource]:
    """Map a caller's roles to the verification source recorded on matches.

    Match verifiers map to ``MATCH_VERIFIER``, admins to ``ADMIN`` and the
    system actor to ``SYSTEM``; system wins over admin when both are held.

    :param roles: Caller's role set
    :param verified: Whether the submission is verified at all
    :returns: The source, or None for unverified submissions
    """
    if not verified:
        return None

    source = MatchVerificationSource.MATCH_VERIFIER
    if Role.ADMIN in roles:
        source = MatchVerificationSource.ADMIN
    if Role.SYSTEM in roles:
        source = MatchVerificationSource.SYSTEM
    return source
