"""Core dependencies for FastAPI application."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from .database import get_db

# Type aliases for cleaner dependency injection
DbSessionDep = Annotated[AsyncSession, Depends(get_db)]

__all__ = ["DbSessionDep"]
