"""Tests for the throttled SEC client: spacing, backoff, redirects, errors."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from marketdesk.core.exceptions import DecodeError, HttpError, RateLimitedError
from marketdesk.services.edgar import RequestScheduler

from conftest import FakeClock

URL = "https://data.sec.gov/submissions/CIK0000320193.json"


class TestRequestScheduler:
    """Tests for RequestScheduler spacing."""

    @pytest.mark.asyncio
    async def test_first_request_is_not_delayed(self, fake_clock):
        scheduler = RequestScheduler(0.150, clock=fake_clock, sleep=fake_clock.sleep)

        await scheduler.wait_turn()

        assert fake_clock.sleeps == []

    @pytest.mark.asyncio
    async def test_waits_only_for_the_remaining_gap(self, fake_clock):
        scheduler = RequestScheduler(0.150, clock=fake_clock, sleep=fake_clock.sleep)

        await scheduler.wait_turn()
        fake_clock.advance(0.100)
        await scheduler.wait_turn()

        assert fake_clock.sleeps == [pytest.approx(0.050)]

    @pytest.mark.asyncio
    async def test_no_wait_after_long_idle(self, fake_clock):
        scheduler = RequestScheduler(0.150, clock=fake_clock, sleep=fake_clock.sleep)

        await scheduler.wait_turn()
        fake_clock.advance(5)
        await scheduler.wait_turn()

        assert fake_clock.sleeps == []


class TestRateLimitedHttpClient:
    """Tests for RateLimitedHttpClient."""

    @pytest.mark.asyncio
    async def test_consecutive_dispatches_are_spaced(self, edgar_client_factory):
        clock = FakeClock()
        dispatched: list[float] = []

        def handler(request: httpx.Request) -> httpx.Response:
            dispatched.append(clock())
            return httpx.Response(200, json={"ok": True})

        client = edgar_client_factory(handler, clock=clock, min_interval=0.150)

        await asyncio.gather(*(client.fetch_json(URL) for _ in range(5)))

        assert len(dispatched) == 5
        gaps = [b - a for a, b in zip(dispatched, dispatched[1:])]
        assert all(gap >= 0.150 - 1e-9 for gap in gaps)

    @pytest.mark.asyncio
    async def test_sets_identifying_user_agent(self, edgar_client_factory):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, content=b"bytes")

        client = edgar_client_factory(handler)
        await client.fetch_binary(URL)

        assert seen[0].headers["User-Agent"] == "MarketDesk/test (contact: test@example.com)"

    @pytest.mark.asyncio
    async def test_429_retried_with_exponential_backoff_then_rate_limited(
        self, edgar_client_factory
    ):
        clock = FakeClock()
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(429)

        client = edgar_client_factory(handler, clock=clock)

        with pytest.raises(RateLimitedError):
            await client.fetch_json(URL)

        assert len(requests) == 4  # first attempt + 3 retries
        assert clock.sleeps == [1.0, 2.0, 4.0]

    @pytest.mark.asyncio
    async def test_503_then_success(self, edgar_client_factory):
        clock = FakeClock()
        statuses = iter([503, 200])

        def handler(request: httpx.Request) -> httpx.Response:
            status = next(statuses)
            if status == 200:
                return httpx.Response(200, json={"cik": 320193})
            return httpx.Response(status)

        client = edgar_client_factory(handler, clock=clock)

        assert await client.fetch_json(URL) == {"cik": 320193}
        assert clock.sleeps == [1.0]

    @pytest.mark.asyncio
    async def test_404_is_not_retried(self, edgar_client_factory):
        clock = FakeClock()
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(404)

        client = edgar_client_factory(handler, clock=clock)

        with pytest.raises(HttpError) as exc_info:
            await client.fetch_json(URL)

        assert exc_info.value.status == 404
        assert exc_info.value.url == URL
        assert len(requests) == 1
        assert clock.sleeps == []

    @pytest.mark.asyncio
    async def test_malformed_json_is_decode_error(self, edgar_client_factory):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, content=b"<html>not json</html>")

        client = edgar_client_factory(handler)

        with pytest.raises(DecodeError):
            await client.fetch_json(URL)
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_redirect_is_followed_through_the_throttle(self, edgar_client_factory):
        clock = FakeClock()
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            if request.url.path == "/old.json":
                return httpx.Response(301, headers={"Location": "/new.json"})
            return httpx.Response(200, json={"moved": True})

        client = edgar_client_factory(handler, clock=clock, min_interval=0.150)

        result = await client.fetch_json("https://www.sec.gov/old.json")

        assert result == {"moved": True}
        assert seen == ["https://www.sec.gov/old.json", "https://www.sec.gov/new.json"]
        # One throttle wait for the second hop, no retry backoff
        assert clock.sleeps == [pytest.approx(0.150)]

    @pytest.mark.asyncio
    async def test_redirect_does_not_consume_retries(self, edgar_client_factory):
        clock = FakeClock()
        responses = iter(
            [
                httpx.Response(302, headers={"Location": "https://www.sec.gov/b"}),
                httpx.Response(429),
                httpx.Response(302, headers={"Location": "https://www.sec.gov/b"}),
                httpx.Response(200, content=b"ok"),
            ]
        )

        client = edgar_client_factory(lambda request: next(responses), clock=clock, max_retries=1)

        assert await client.fetch_binary("https://www.sec.gov/a") == b"ok"
        assert clock.sleeps == [1.0]
