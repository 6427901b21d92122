import pytest
from datetime import timedelta

from app.core.rate_limiter import FixedWindowRateLimiter


@pytest.fixture
def limiter(fake_clock):
    return FixedWindowRateLimiter(
        limit=3, window=timedelta(seconds=60), clock=fake_clock, name="test"
    )


def test_budget_is_exhausted_after_limit(limiter):
    """Test the window admits exactly ``limit`` requests"""
    for _ in range(3):
        assert not limiter.is_limited()
        limiter.record()

    assert limiter.is_limited()


def test_window_opens_with_first_request(limiter, fake_clock):
    """Test the reset time is measured from the first recorded request"""
    assert limiter.seconds_until_reset() == 0.0

    limiter.record()
    fake_clock.advance(20)
    limiter.record()

    assert limiter.seconds_until_reset() == 40.0


def test_window_resets(limiter, fake_clock):
    """Test the full budget returns once the window passed"""
    limiter.record(3)
    fake_clock.advance(60)

    assert not limiter.is_limited()
    assert limiter.remaining == 3


def test_seconds_until_reset_never_negative(limiter, fake_clock):
    """Test a passed reset time reports zero"""
    limiter.record()
    fake_clock.advance(90)

    assert limiter.seconds_until_reset() == 0.0


async def test_wait_if_limited_waits_for_reset(limiter, fake_clock):
    """Test an exhausted budget waits exactly until the reset"""
    limiter.record(3)
    fake_clock.advance(25)

    interrupted = await limiter.wait_if_limited()

    assert interrupted is False
    assert fake_clock.sleeps == [35.0]
    assert not limiter.is_limited()


async def test_wait_if_limited_without_pressure(limiter, fake_clock):
    """Test no sleep happens while budget remains"""
    limiter.record()

    assert await limiter.wait_if_limited() is False
    assert fake_clock.sleeps == []


def test_limit_must_be_positive(fake_clock):
    """Test a zero budget is refused"""
    with pytest.raises(ValueError):
        FixedWindowRateLimiter(limit=0, window=timedelta(seconds=1), clock=fake_clock)
