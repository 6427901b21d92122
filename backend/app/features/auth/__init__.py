"""Authentication feature module."""

from .models import User
from .roles import Role, resolve_verification_source
from .schemas import AuthenticatedUser
from .service import AuthService
from .dependencies import (
    get_current_user,
    require_roles,
    CurrentUserDep,
    PrivilegedUserDep,
    VerifierUserDep,
)

__all__ = [
    "User",
    "Role",
    "resolve_verification_source",
    "AuthenticatedUser",
    "AuthService",
    "get_current_user",
    "require_roles",
    "CurrentUserDep",
    "PrivilegedUserDep",
    "VerifierUserDep",
]
