"""
Market data gateway: cache first, then primary provider, then secondary.

The same flow serves every data kind (quote, historical range, financials,
ETF details); only the provider call and the cache key differ.

Usage:
    gateway = MarketDataGateway(FmpDataProvider(key), YahooDataProvider())

    envelope = await gateway.get_quote("aapl")
    if envelope.ok:
        print(envelope.data.price, envelope.fetched_at)
"""

from __future__ import annotations

import time
from datetime import date
from typing import Any, Awaitable, Callable, Optional

from marketdesk.cache import ResponseCache, cache_key
from marketdesk.core.data_helpers import safe_date
from marketdesk.core.exceptions import (
    InvalidInputError,
    NotFoundError,
    ProviderUnavailableError,
    error_kind_of,
)
from marketdesk.core.logging import get_logger
from marketdesk.domain import (
    EtfProfile,
    Envelope,
    Financials,
    HistoricalBar,
    ProviderAttempt,
    Quote,
    SymbolMatch,
    normalize_bars,
)
from marketdesk.services.data_providers.base import MarketDataProvider

logger = get_logger("market_data")

ProviderCall = Callable[[MarketDataProvider, str], Awaitable[Any]]

SEARCH_LIMIT = 10


def normalize_symbol(symbol: Any) -> str:
    """Trim and uppercase a ticker symbol; blank symbols are invalid."""
    normalized = str(symbol or "").strip().upper()
    if not normalized:
        raise InvalidInputError("Symbol must not be empty")
    return normalized


def parse_date(value: Any, label: str) -> date:
    parsed = safe_date(value)
    if parsed is None:
        raise InvalidInputError(f"Invalid {label} date: {value!r}")
    return parsed


def is_empty_result(result: Any) -> bool:
    """Empty answers count as failures so the next provider gets a chance."""
    if result is None:
        return True
    if isinstance(result, (list, tuple, dict)):
        return len(result) == 0
    return bool(getattr(result, "is_empty", False))


class MarketDataGateway:
    """
    Per-kind read-through cache in front of two providers.

    Never raises: every outcome is an ``Envelope``. When both providers fail
    the secondary's error is the one reported; every attempt is listed in
    ``Envelope.attempts``.
    """

    def __init__(
        self,
        primary: MarketDataProvider,
        secondary: MarketDataProvider,
        ttl: float = 60.0,
        max_entries: int = 512,
        clock: Callable[[], float] = time.time,
    ):
        self.primary = primary
        self.secondary = secondary
        self.quotes: ResponseCache[str, Quote] = ResponseCache("quote", ttl, max_entries, clock)
        self.historical: ResponseCache[str, list[HistoricalBar]] = ResponseCache(
            "historical", ttl, max_entries, clock
        )
        self.financials: ResponseCache[str, Financials] = ResponseCache(
            "financials", ttl, max_entries, clock
        )
        self.etfs: ResponseCache[str, EtfProfile] = ResponseCache("etf", ttl, max_entries, clock)

    @property
    def providers(self) -> list[MarketDataProvider]:
        return [self.primary, self.secondary]

    async def aclose(self) -> None:
        for provider in self.providers:
            await provider.aclose()

    # =========================================================================
    # Public API
    # =========================================================================

    async def get_quote(self, symbol: str) -> Envelope[Quote]:
        return await self._fetch(
            "quote", self.quotes, symbol, lambda p, s: p.get_quote(s)
        )

    async def get_historical(
        self, symbol: str, start: Any, end: Any
    ) -> Envelope[list[HistoricalBar]]:
        try:
            start_date = parse_date(start, "start")
            end_date = parse_date(end, "end")
            if start_date > end_date:
                raise InvalidInputError(
                    f"Start date {start_date} is after end date {end_date}"
                )
        except InvalidInputError as e:
            return Envelope.from_exception(e)

        async def call(provider: MarketDataProvider, sym: str) -> list[HistoricalBar]:
            return normalize_bars(await provider.get_historical(sym, start_date, end_date))

        return await self._fetch(
            "historical",
            self.historical,
            symbol,
            call,
            key_parts=(start_date.isoformat(), end_date.isoformat()),
        )

    async def get_financials(self, symbol: str) -> Envelope[Financials]:
        return await self._fetch(
            "financials", self.financials, symbol, lambda p, s: p.get_financials(s)
        )

    async def get_etf_profile(self, symbol: str) -> Envelope[EtfProfile]:
        return await self._fetch(
            "etf", self.etfs, symbol, lambda p, s: p.get_etf_profile(s)
        )

    async def search_symbols(
        self, query: str, limit: int = SEARCH_LIMIT
    ) -> Envelope[list[SymbolMatch]]:
        """Free-text symbol search with fallback; not cached."""
        text = str(query or "").strip()
        if not text:
            return Envelope.from_exception(InvalidInputError("Search query must not be empty"))

        attempts: list[ProviderAttempt] = []
        try:
            data, _ = await self._call_providers(
                "search", text, lambda p, q: p.search_symbols(q, limit), attempts
            )
        except Exception as e:
            return Envelope.from_exception(e, attempts=attempts)
        return Envelope.success(data, attempts=attempts)

    # =========================================================================
    # Internals
    # =========================================================================

    async def _fetch(
        self,
        kind: str,
        cache: ResponseCache,
        symbol: Any,
        call: ProviderCall,
        key_parts: tuple[str, ...] = (),
    ) -> Envelope:
        try:
            normalized = normalize_symbol(symbol)
        except InvalidInputError as e:
            return Envelope.from_exception(e)

        key = cache_key(normalized, *key_parts)
        cached = cache.get(key)
        if cached is not None:
            return Envelope.success(cached.data, cached.fetched_at_datetime)

        attempts: list[ProviderAttempt] = []
        try:
            data, _ = await self._call_providers(kind, normalized, call, attempts)
        except Exception as e:
            return Envelope.from_exception(e, attempts=attempts)

        entry = cache.put(key, data)
        return Envelope.success(data, entry.fetched_at_datetime, attempts=attempts)

    async def _call_providers(
        self,
        kind: str,
        subject: str,
        call: ProviderCall,
        attempts: list[ProviderAttempt],
    ) -> tuple[Any, MarketDataProvider]:
        """Try each provider in order; raise the last provider's error."""
        last_error: Optional[Exception] = None

        for provider in self.providers:
            if not provider.is_configured():
                last_error = ProviderUnavailableError(f"{provider.name} is not configured")
                attempts.append(
                    ProviderAttempt(
                        provider=provider.name,
                        ok=False,
                        error_kind=last_error.error_kind,
                        message=last_error.message,
                    )
                )
                logger.debug(f"Skipping {provider.name} for {kind} {subject}: not configured")
                continue

            try:
                result = await call(provider, subject)
                if is_empty_result(result):
                    raise NotFoundError(f"{provider.name} returned no {kind} data for {subject}")
            except Exception as e:
                last_error = e
                attempt = ProviderAttempt(
                    provider=provider.name,
                    ok=False,
                    error_kind=error_kind_of(e),
                    message=str(e) or type(e).__name__,
                )
                attempts.append(attempt)
                logger.warning(
                    f"{provider.name} failed for {kind} {subject}: "
                    f"{attempt.error_kind.value}: {attempt.message}"
                )
                continue

            attempts.append(ProviderAttempt(provider=provider.name, ok=True))
            logger.info(f"{kind} {subject} answered by {provider.name}")
            return result, provider

        raise last_error or ProviderUnavailableError(f"No provider available for {kind}")
