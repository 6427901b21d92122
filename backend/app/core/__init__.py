"""Core infrastructure module.

This module exports core utilities used across features.
Never imports from features - only from external libraries.
"""

from .config import Settings, get_settings, get_global_settings
from .database import get_db, db_manager
from .exceptions import (
    ServiceException,
    PersistenceError,
    ValidationError,
    DuplicateTournamentError,
    InvalidStateTransitionError,
    NotFoundError,
    AuthorizationError,
    ExternalServiceError,
)
from .enums import Ruleset, MatchVerificationStatus, MatchVerificationSource
from .models import Base

__all__ = [
    # Config
    "Settings",
    "get_settings",
    "get_global_settings",
    # Database
    "get_db",
    "db_manager",
    # Exceptions
    "ServiceException",
    "PersistenceError",
    "ValidationError",
    "DuplicateTournamentError",
    "InvalidStateTransitionError",
    "NotFoundError",
    "AuthorizationError",
    "ExternalServiceError",
    # Enums
    "Ruleset",
    "MatchVerificationStatus",
    "MatchVerificationSource",
    # Models
    "Base",
]
