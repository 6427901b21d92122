import asyncio
import httpx
import pytest
from datetime import datetime, timedelta, timezone

from app.core.enums import Ruleset
from app.core.osu_api.client import OsuAPIClient
from app.core.osu_api.errors import (
    AuthenticationError,
    RequestCancelledError,
    ServiceUnavailableError,
)
from app.core.osu_track.client import OsuTrackClient, parse_stats_history
from app.core.rate_limiter import FixedWindowRateLimiter


def _osu_client(handler, **kwargs):
    return OsuAPIClient(
        api_key="test-key",
        base_url="https://osu.test/api",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


async def test_get_user_parses_string_fields():
    """Test the v1 user entry is decoded and the key is sent"""
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(request.url.params)
        return httpx.Response(
            200,
            json=[
                {
                    "user_id": "4787150",
                    "username": "Vaxei",
                    "country": "US",
                    "pp_rank": "12",
                    "pp_raw": "14000.5",
                }
            ],
        )

    calls = []
    client = _osu_client(handler, request_callback=lambda m, c: calls.append((m, c)))
    try:
        user = await client.get_user(4787150, Ruleset.TAIKO)
    finally:
        await client.close()

    assert user.user_id == 4787150
    assert user.rank == 12
    assert user.pp_raw == 14000.5
    assert seen["k"] == "test-key"
    assert seen["u"] == "4787150"
    assert seen["m"] == "1"
    assert calls == [("api_requests_made", 1)]


async def test_get_user_empty_result_is_none():
    """Test restricted or unknown users come back as None"""
    client = _osu_client(lambda request: httpx.Response(200, json=[]))
    try:
        assert await client.get_user(1, Ruleset.STANDARD) is None
    finally:
        await client.close()


async def test_get_user_invalid_key():
    """Test a 401 raises AuthenticationError"""
    client = _osu_client(lambda request: httpx.Response(401))
    try:
        with pytest.raises(AuthenticationError):
            await client.get_user(1, Ruleset.STANDARD)
    finally:
        await client.close()


async def test_get_user_server_error_without_retries():
    """Test 5xx responses surface once retries are exhausted"""
    client = _osu_client(lambda request: httpx.Response(503), max_retries=0)
    try:
        with pytest.raises(ServiceUnavailableError):
            await client.get_user(1, Ruleset.STANDARD)
    finally:
        await client.close()


async def test_get_user_backoff_uses_clock(fake_clock):
    """Test retries wait for Retry-After, then fall back to exponential delays"""
    # Setup
    responses = iter(
        [
            httpx.Response(429, headers={"Retry-After": "30"}),
            httpx.Response(503),
            httpx.Response(200, json=[]),
        ]
    )
    client = _osu_client(
        lambda request: next(responses),
        clock=fake_clock,
        rate_limiter=FixedWindowRateLimiter(
            limit=100, window=timedelta(minutes=1), clock=fake_clock
        ),
    )

    # Execute
    try:
        user = await client.get_user(1, Ruleset.STANDARD)
    finally:
        await client.close()

    # Verify
    assert user is None
    assert fake_clock.sleeps == [30.0, 2.0]


async def test_get_user_shutdown_interrupts_backoff(fake_clock):
    """Test a set stop event ends the retry loop instead of waiting it out"""
    # Setup
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(429, headers={"Retry-After": "30"})

    stop_event = asyncio.Event()
    stop_event.set()
    client = _osu_client(
        handler,
        clock=fake_clock,
        stop_event=stop_event,
        rate_limiter=FixedWindowRateLimiter(
            limit=100, window=timedelta(minutes=1), clock=fake_clock
        ),
    )

    # Execute
    try:
        with pytest.raises(RequestCancelledError):
            await client.get_user(1, Ruleset.STANDARD)
    finally:
        await client.close()

    # Verify
    assert len(requests) == 1
    assert fake_clock.sleeps == [30.0]


async def test_get_user_shutdown_interrupts_rate_limit_wait(fake_clock):
    """Test an exhausted budget with a set stop event sends nothing"""
    limiter = FixedWindowRateLimiter(
        limit=1, window=timedelta(minutes=1), clock=fake_clock
    )
    limiter.record()
    stop_event = asyncio.Event()
    stop_event.set()
    requests = []
    client = _osu_client(
        lambda request: requests.append(request) or httpx.Response(200, json=[]),
        clock=fake_clock,
        stop_event=stop_event,
        rate_limiter=limiter,
    )

    try:
        with pytest.raises(RequestCancelledError):
            await client.get_user(1, Ruleset.STANDARD)
    finally:
        await client.close()

    assert requests == []


async def test_osu_track_history_request():
    """Test osu!track is queried with date-only bounds"""
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen.update(request.url.params)
        return httpx.Response(200, text="[]")

    client = OsuTrackClient(
        base_url="https://track.test", transport=httpx.MockTransport(handler)
    )
    try:
        body = await client.get_stats_history(
            100,
            Ruleset.MANIA,
            datetime(2020, 3, 1, 17, 30, tzinfo=timezone.utc),
            datetime(2021, 3, 1, tzinfo=timezone.utc),
        )
    finally:
        await client.close()

    assert body == "[]"
    assert seen["path"] == "/stats_history"
    assert seen["user"] == "100"
    assert seen["mode"] == "3"
    assert seen["from"] == "2020-03-01"
    assert seen["to"] == "2021-03-01"


async def test_osu_track_failure_returns_empty_body():
    """Test a failed osu!track request yields an empty body"""
    client = OsuTrackClient(
        base_url="https://track.test",
        transport=httpx.MockTransport(lambda request: httpx.Response(500)),
    )
    try:
        body = await client.get_stats_history(
            100,
            Ruleset.STANDARD,
            datetime(2020, 1, 1, tzinfo=timezone.utc),
            datetime(2021, 1, 1, tzinfo=timezone.utc),
        )
    finally:
        await client.close()

    assert body == ""


def test_parse_stats_history_assumes_utc():
    """Test naive osu!track timestamps are read as UTC"""
    stats = parse_stats_history(
        '[{"pp_rank": 500, "timestamp": "2020-03-02T10:00:00", "count300": 1}]'
    )

    assert stats[0].rank == 500
    assert stats[0].timestamp == datetime(2020, 3, 2, 10, tzinfo=timezone.utc)
