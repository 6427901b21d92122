"""Authentication dependencies for protecting routes."""

from typing import Annotated, Optional

from fastapi import Depends, Header, Request

from app.core.config import get_global_settings
from app.core.exceptions import AuthorizationError
from .roles import Role
from .schemas import AuthenticatedUser
from .service import AuthService, extract_token


def get_auth_service() -> AuthService:
    """Dependency to get auth service instance."""
    return AuthService()


async def get_current_user(
    request: Request,
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
    authorization: Annotated[Optional[str], Header()] = None,
) -> AuthenticatedUser:
    """Get the current authenticated caller; 401 when unauthenticated."""
    cookie = request.cookies.get(get_global_settings().auth_cookie_name)
    return auth_service.authenticate(extract_token(cookie, authorization))


CurrentUserDep = Annotated[AuthenticatedUser, Depends(get_current_user)]


def require_roles(*roles: Role):
    """Build a dependency admitting only callers holding one of ``roles``.

    :returns: Dependency returning the caller; raises 403 otherwise
    """

    async def dependency(current_user: CurrentUserDep) -> AuthenticatedUser:
        if not current_user.has_any(*roles):
            raise AuthorizationError(
                "Insufficient privileges",
                status_code=403,
                context={"required": [role.value for role in roles]},
            )
        return current_user

    return dependency


PrivilegedUserDep = Annotated[
    AuthenticatedUser, Depends(require_roles(Role.ADMIN, Role.SYSTEM))
]
VerifierUserDep = Annotated[
    AuthenticatedUser, Depends(require_roles(Role.VERIFIER, Role.ADMIN, Role.SYSTEM))
]
