"""Authentication service for access tokens.

Tokens are issued by the login flow (outside this service) and carry the
user id, linked player id and role names. They may arrive either in the
``OTR-Access-Token`` cookie or in the ``Authorization`` header.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import structlog
from jose import JWTError, jwt
from pydantic import ValidationError as PydanticValidationError

from app.core.config import Settings, get_global_settings
from app.core.exceptions import AuthorizationError
from .models import User
from .roles import parse_roles
from .schemas import AuthenticatedUser, TokenData

logger = structlog.get_logger(__name__)


def extract_token(
    cookie_value: Optional[str], authorization_header: Optional[str]
) -> Optional[str]:
    """Pick the access token from the cookie or the Authorization header.

    The cookie wins when both are present. A ``Bearer`` prefix on the
    header is optional.
    """
    if cookie_value:
        return cookie_value.strip() or None

    if not authorization_header:
        return None

    value = authorization_header.strip()
    scheme, _, credentials = value.partition(" ")
    if credentials and scheme.lower() == "bearer":
        value = credentials.strip()
    return value or None


class AuthService:
    """Service for issuing and validating access tokens."""

    def __init__(self, settings: Optional[Settings] = None):
        """Initialize auth service."""
        self.settings = settings or get_global_settings()

    def create_access_token(
        self, user: User, expires_delta: Optional[timedelta] = None
    ) -> str:
        """Create a JWT access token for ``user``."""
        expire = datetime.now(timezone.utc) + (
            expires_delta
            or timedelta(minutes=self.settings.jwt_access_token_expire_minutes)
        )
        claims = {
            "sub": str(user.id),
            "player_id": user.player_id,
            "roles": list(user.roles or []),
            "iss": self.settings.jwt_issuer,
            "exp": expire,
        }
        return jwt.encode(
            claims,
            self.settings.jwt_secret_key,
            algorithm=self.settings.jwt_algorithm,
        )

    def authenticate(self, token: Optional[str]) -> AuthenticatedUser:
        """Validate ``token`` and return the caller identity.

        :raises AuthorizationError: 401 when the token is missing or invalid
        """
        if not token:
            raise AuthorizationError("Not authenticated", status_code=401)

        try:
            payload = jwt.decode(
                token,
                self.settings.jwt_secret_key,
                algorithms=[self.settings.jwt_algorithm],
                issuer=self.settings.jwt_issuer,
            )
            token_data = TokenData.model_validate(payload)
            user_id = int(token_data.sub)
        except (JWTError, PydanticValidationError, ValueError) as e:
            logger.info("Rejected access token", error_type=type(e).__name__)
            raise AuthorizationError(
                "Could not validate credentials", status_code=401
            ) from e

        return AuthenticatedUser(
            user_id=user_id,
            player_id=token_data.player_id,
            roles=parse_roles(token_data.roles),
        )
