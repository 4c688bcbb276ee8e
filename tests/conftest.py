"""Pytest configuration and fixtures."""

from __future__ import annotations

from datetime import date
from typing import Any, Callable

import httpx
import pytest

from marketdesk.services.data_providers.base import MarketDataProvider
from marketdesk.services.edgar import RateLimitedHttpClient, RequestScheduler


class FakeClock:
    """Deterministic clock; ``sleep`` advances time instead of waiting."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class StubProvider(MarketDataProvider):
    """Provider returning canned outcomes; an Exception outcome is raised."""

    def __init__(self, name: str = "stub", configured: bool = True, **outcomes: Any):
        self.name = name
        self.configured = configured
        self.outcomes = outcomes
        self.calls: list[tuple[str, tuple]] = []

    def is_configured(self) -> bool:
        return self.configured

    async def _answer(self, method: str, *args: Any) -> Any:
        self.calls.append((method, args))
        outcome = self.outcomes.get(method)
        if isinstance(outcome, Exception):
            raise outcome
        if callable(outcome):
            return outcome(*args)
        return outcome

    def count(self, method: str) -> int:
        return sum(1 for name, _ in self.calls if name == method)

    async def get_quote(self, symbol: str):
        return await self._answer("get_quote", symbol)

    async def get_historical(self, symbol: str, start: date, end: date):
        return await self._answer("get_historical", symbol, start, end)

    async def get_financials(self, symbol: str):
        return await self._answer("get_financials", symbol)

    async def get_etf_profile(self, symbol: str):
        return await self._answer("get_etf_profile", symbol)

    async def search_symbols(self, query: str, limit: int = 10):
        return await self._answer("search_symbols", query, limit)


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def edgar_client_factory() -> Callable[..., RateLimitedHttpClient]:
    """Build a RateLimitedHttpClient over an httpx.MockTransport handler."""

    def factory(
        handler: Callable[[httpx.Request], httpx.Response],
        clock: FakeClock | None = None,
        min_interval: float = 0.0,
        max_retries: int = 3,
    ) -> RateLimitedHttpClient:
        clock = clock or FakeClock()
        scheduler = RequestScheduler(
            min_interval=min_interval, clock=clock, sleep=clock.sleep
        )
        return RateLimitedHttpClient(
            scheduler,
            user_agent="MarketDesk/test (contact: test@example.com)",
            max_retries=max_retries,
            backoff_seconds=1.0,
            transport=httpx.MockTransport(handler),
            sleep=clock.sleep,
        )

    return factory
