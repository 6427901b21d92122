import pytest
from datetime import timedelta

from app.core.config import Settings
from app.core.enums import MatchVerificationSource
from app.core.exceptions import AuthorizationError
from app.features.auth.models import User
from app.features.auth.roles import (
    Role,
    can_verify,
    parse_roles,
    resolve_verification_source,
)
from app.features.auth.service import AuthService, extract_token


@pytest.fixture
def auth_service():
    return AuthService(
        settings=Settings(jwt_secret_key="x" * 48, jwt_issuer="otr-test")
    )


def test_parse_roles_ignores_unknown_and_case():
    """Test role names are normalized and unknown ones dropped"""
    assert parse_roles(["Admin", " verifier ", "whitelist"]) == frozenset(
        {Role.ADMIN, Role.VERIFIER}
    )


def test_can_verify():
    """Test which roles may verify"""
    assert can_verify(frozenset({Role.VERIFIER}))
    assert can_verify(frozenset({Role.SYSTEM}))
    assert not can_verify(frozenset({Role.USER, Role.SUBMIT}))


@pytest.mark.parametrize(
    "roles, expected",
    [
        ({Role.VERIFIER}, MatchVerificationSource.MATCH_VERIFIER),
        ({Role.VERIFIER, Role.ADMIN}, MatchVerificationSource.ADMIN),
        ({Role.ADMIN, Role.SYSTEM}, MatchVerificationSource.SYSTEM),
    ],
)
def test_resolve_verification_source(roles, expected):
    """Test the most privileged role decides the verification source"""
    assert resolve_verification_source(frozenset(roles)) is expected


def test_resolve_verification_source_unverified():
    """Test unverified submissions have no source"""
    assert resolve_verification_source(frozenset({Role.ADMIN}), verified=False) is None


@pytest.mark.parametrize(
    "cookie, header, expected",
    [
        ("cookie-token", "Bearer header-token", "cookie-token"),
        (None, "Bearer header-token", "header-token"),
        (None, "bearer   header-token ", "header-token"),
        (None, "raw-token", "raw-token"),
        (None, None, None),
        ("", "  ", None),
    ],
)
def test_extract_token(cookie, header, expected):
    """Test the cookie wins over the header and the Bearer prefix is optional"""
    assert extract_token(cookie, header) == expected


def test_token_round_trip(auth_service):
    """Test an issued token authenticates to the same identity"""
    user = User(id=5, player_id=9, roles=["verifier", "bogus"])

    token = auth_service.create_access_token(user)
    caller = auth_service.authenticate(token)

    assert caller.user_id == 5
    assert caller.player_id == 9
    assert caller.roles == frozenset({Role.VERIFIER})


def test_missing_token_is_unauthorized(auth_service):
    """Test requests without a token get 401"""
    with pytest.raises(AuthorizationError) as exc_info:
        auth_service.authenticate(None)

    assert exc_info.value.status_code == 401


def test_expired_token_is_unauthorized(auth_service):
    """Test expired tokens are rejected"""
    token = auth_service.create_access_token(
        User(id=5, roles=[]), expires_delta=timedelta(minutes=-5)
    )

    with pytest.raises(AuthorizationError) as exc_info:
        auth_service.authenticate(token)

    assert exc_info.value.status_code == 401


def test_token_signed_with_other_key_is_unauthorized(auth_service):
    """Test tokens signed with another secret are rejected"""
    other = AuthService(settings=Settings(jwt_secret_key="y" * 48, jwt_issuer="otr-test"))
    token = other.create_access_token(User(id=5, roles=["admin"]))

    with pytest.raises(AuthorizationError):
        auth_service.authenticate(token)
