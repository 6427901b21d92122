"""Authentication schemas."""

from dataclasses import dataclass, field
from typing import FrozenSet, List, Optional

from pydantic import BaseModel, Field

from .roles import Role


@dataclass(frozen=True)
class AuthenticatedUser:
    """Identity of the caller, decoded from the access token."""

    user_id: int
    player_id: Optional[int] = None
    roles: FrozenSet[Role] = field(default_factory=frozenset)

    def has_any(self, *roles: Role) -> bool:
        """Whether the caller holds at least one of ``roles``."""
        return any(role in self.roles for role in roles)


class TokenData(BaseModel):
    """Claims carried by an access token."""

    sub: str = Field(..., description="User id")
    player_id: Optional[int] = None
    roles: List[str] = Field(default_factory=list)


class Token(BaseModel):
    """Issued access token."""

    access_token: str
    token_type: str = "bearer"
