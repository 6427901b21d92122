"""User model for authentication and authorization."""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import (
    DateTime as SQLDateTime,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.core.models import Base
from .roles import Role, parse_roles


class User(Base):
    """User model for authentication and authorization.

    A user optionally links to exactly one player; the link is unique.
    """

    __tablename__ = "users"
    __table_args__ = {"schema": "auth"}

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
        comment="Auto-incrementing primary key",
    )

    player_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("core.players.id"),
        nullable=True,
        unique=True,
        comment="Linked player (one user per player)",
    )

    roles: Mapped[List[str]] = mapped_column(
        ARRAY(String(32)),
        nullable=False,
        default=list,
        server_default="{}",
        comment="Role names granted to this user",
    )

    session_token: Mapped[Optional[str]] = mapped_column(
        String(512),
        nullable=True,
        comment="Most recently issued access token",
    )

    session_expiration: Mapped[Optional[datetime]] = mapped_column(
        SQLDateTime(timezone=True),
        nullable=True,
        comment="When the current session token expires",
    )

    last_login: Mapped[Optional[datetime]] = mapped_column(
        SQLDateTime(timezone=True),
        nullable=True,
        index=True,
        comment="When the user last logged in",
    )

    created: Mapped[datetime] = mapped_column(
        SQLDateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        comment="When this user account was created",
    )

    updated: Mapped[Optional[datetime]] = mapped_column(
        SQLDateTime(timezone=True),
        nullable=True,
        onupdate=func.now(),
        comment="When this user account was last updated",
    )

    @property
    def role_set(self) -> frozenset[Role]:
        """Roles as enum members."""
        return parse_roles(self.roles or [])

    def __repr__(self) -> str:
        """Return string representation of the user."""
        return f"<User(id={self.id}, player_id={self.player_id}, roles={self.roles})>"
