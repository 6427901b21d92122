import asyncio
from datetime import datetime, timedelta, timezone
from typing import List, Optional

import pytest

from app.features.auth.roles import Role
from app.features.auth.schemas import AuthenticatedUser


class FakeClock:
    """Clock whose sleeps advance time instantly and are recorded."""

    def __init__(self, start: Optional[datetime] = None):
        self.current = start or datetime(2024, 1, 1, tzinfo=timezone.utc)
        self.sleeps: List[float] = []

    def now(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)

    async def sleep(
        self, seconds: float, stop_event: Optional[asyncio.Event] = None
    ) -> bool:
        self.sleeps.append(seconds)
        if stop_event is not None and stop_event.is_set():
            return True
        self.advance(seconds)
        return False


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def plain_user():
    return AuthenticatedUser(user_id=1, player_id=10, roles=frozenset({Role.USER}))


@pytest.fixture
def verifier_user():
    return AuthenticatedUser(
        user_id=2, player_id=20, roles=frozenset({Role.USER, Role.VERIFIER})
    )


@pytest.fixture
def admin_user():
    return AuthenticatedUser(user_id=3, player_id=30, roles=frozenset({Role.ADMIN}))
