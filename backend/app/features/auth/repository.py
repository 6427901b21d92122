"""Repository for users."""

from abc import ABC, abstractmethod
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import User


class UserRepositoryInterface(ABC):
    """Interface for user repository."""

    @abstractmethod
    async def get_by_id(self, user_id: int) -> Optional[User]:
        """Get a user by id."""
        pass

    @abstractmethod
    async def get_for_player(self, player_id: int) -> Optional[User]:
        """Get the user linked to a player."""
        pass


class SQLAlchemyUserRepository(UserRepositoryInterface):
    """SQLAlchemy implementation of user repository."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, user_id: int) -> Optional[User]:
        return await self.db.get(User, user_id)

    async def get_for_player(self, player_id: int) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.player_id == player_id))
        return result.scalar_one_or_none()
