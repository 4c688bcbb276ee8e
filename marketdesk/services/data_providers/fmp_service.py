"""
Financial Modeling Prep provider - primary market data source.

Uses the FMP stable API over httpx. Requires an API key; without one the
provider reports itself as unconfigured and the gateway goes straight to the
fallback provider.

FMP reports ETF expense ratios and holding weights in percent; they are
converted to fractions here.
"""

from __future__ import annotations

import asyncio
from datetime import date
from typing import Any, Optional

import httpx

from marketdesk.core.data_helpers import (
    percent_to_fraction,
    safe_date,
    safe_float,
    safe_int,
    safe_str,
)
from marketdesk.core.exceptions import (
    AppException,
    DecodeError,
    HttpError,
    ProviderUnavailableError,
)
from marketdesk.core.logging import get_logger
from marketdesk.domain import (
    EtfHolding,
    EtfProfile,
    FinancialPeriod,
    Financials,
    HistoricalBar,
    Quote,
    SymbolMatch,
)
from marketdesk.domain.fundamentals import sort_periods

from .base import MarketDataProvider

logger = get_logger("data_providers.fmp")

DEFAULT_BASE_URL = "https://financialmodelingprep.com/stable"
STATEMENT_LIMIT = 5


def _first(rows: Any) -> dict[str, Any]:
    """First record of an FMP list response, or an empty dict."""
    if isinstance(rows, list) and rows and isinstance(rows[0], dict):
        return rows[0]
    if isinstance(rows, dict):
        return rows
    return {}


def _income_period(row: dict[str, Any]) -> Optional[FinancialPeriod]:
    period_end = safe_date(row.get("date"))
    if period_end is None:
        return None
    return FinancialPeriod(
        period_end=period_end,
        revenue=safe_float(row.get("revenue")),
        gross_profit=safe_float(row.get("grossProfit")),
        operating_income=safe_float(row.get("operatingIncome")),
        net_income=safe_float(row.get("netIncome")),
    )


def _balance_period(row: dict[str, Any]) -> Optional[FinancialPeriod]:
    period_end = safe_date(row.get("date"))
    if period_end is None:
        return None
    equity = row.get("totalStockholdersEquity")
    if equity is None:
        equity = row.get("totalEquity")
    return FinancialPeriod(
        period_end=period_end,
        total_assets=safe_float(row.get("totalAssets")),
        total_liabilities=safe_float(row.get("totalLiabilities")),
        total_equity=safe_float(equity),
    )


def _periods(rows: Any, parse) -> list[FinancialPeriod]:
    if not isinstance(rows, list):
        return []
    periods = [parse(row) for row in rows if isinstance(row, dict)]
    return sort_periods([p for p in periods if p is not None])


class FmpDataProvider(MarketDataProvider):
    """Market data from the Financial Modeling Prep stable API."""

    name = "fmp"

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._api_key = api_key.strip()
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
        )

    def is_configured(self) -> bool:
        return bool(self._api_key)

    async def aclose(self) -> None:
        await self._client.aclose()

    # =========================================================================
    # HTTP
    # =========================================================================

    async def _fetch(self, endpoint: str, params: dict[str, Any]) -> Any:
        """GET an FMP endpoint and decode the JSON body."""
        if not self._api_key:
            raise ProviderUnavailableError("FMP API key is not configured")

        try:
            response = await self._client.get(
                endpoint, params={**params, "apikey": self._api_key}
            )
        except httpx.HTTPError as e:
            raise ProviderUnavailableError(f"FMP request to {endpoint} failed: {e}") from e

        if response.status_code in (401, 403):
            raise ProviderUnavailableError(
                f"FMP rejected the API key for {endpoint} ({response.status_code})"
            )
        if not response.is_success:
            # Never echo the full URL, it carries the API key
            raise HttpError(response.status_code, f"fmp:{endpoint}")

        try:
            data = response.json()
        except ValueError as e:
            raise DecodeError(f"FMP returned malformed JSON for {endpoint}") from e

        if isinstance(data, dict) and "Error Message" in data:
            raise ProviderUnavailableError(f"FMP error: {data['Error Message']}")
        return data

    async def _fetch_optional(self, endpoint: str, params: dict[str, Any]) -> Any:
        """Fetch supplementary data; failures only cost the extra fields."""
        try:
            return await self._fetch(endpoint, params)
        except AppException as e:
            logger.debug(f"Optional FMP call {endpoint} failed: {e.message}")
            return None

    # =========================================================================
    # Provider API
    # =========================================================================

    async def get_quote(self, symbol: str) -> Quote | None:
        params = {"symbol": symbol}
        rows, profile_rows, ratio_rows = await asyncio.gather(
            self._fetch("quote", params),
            self._fetch_optional("profile", params),
            self._fetch_optional("ratios-ttm", params),
        )
        row = _first(rows)
        if not row:
            return None
        profile = _first(profile_rows)
        ratios = _first(ratio_rows)

        trailing_pe = ratios.get("priceToEarningsRatioTTM")
        if trailing_pe is None:
            trailing_pe = row.get("pe")

        return Quote(
            symbol=safe_str(row.get("symbol")) or symbol,
            name=safe_str(row.get("name")) or safe_str(profile.get("companyName")),
            quote_kind="ETF" if profile.get("isEtf") else "EQUITY",
            price=safe_float(row.get("price")),
            previous_close=safe_float(row.get("previousClose")),
            change=safe_float(row.get("change")),
            change_percent=safe_float(
                row.get("changePercentage", row.get("changesPercentage"))
            ),
            market_cap=safe_float(row.get("marketCap")),
            volume=safe_int(row.get("volume")),
            day_high=safe_float(row.get("dayHigh")),
            day_low=safe_float(row.get("dayLow")),
            fifty_two_week_high=safe_float(row.get("yearHigh")),
            fifty_two_week_low=safe_float(row.get("yearLow")),
            trailing_pe=safe_float(trailing_pe),
            price_to_book=safe_float(ratios.get("priceToBookRatioTTM")),
            price_to_sales=safe_float(ratios.get("priceToSalesRatioTTM")),
        )

    async def get_historical(
        self, symbol: str, start: date, end: date
    ) -> list[HistoricalBar]:
        data = await self._fetch(
            "historical-price-eod/full",
            {"symbol": symbol, "from": start.isoformat(), "to": end.isoformat()},
        )
        # Legacy responses wrap the rows in {"historical": [...]}
        rows = data.get("historical", []) if isinstance(data, dict) else data
        bars = []
        for row in rows or []:
            day = safe_date(row.get("date"))
            if day is None:
                continue
            bars.append(
                HistoricalBar(
                    date=day,
                    open=safe_float(row.get("open")),
                    high=safe_float(row.get("high")),
                    low=safe_float(row.get("low")),
                    close=safe_float(row.get("close")),
                    volume=safe_int(row.get("volume")),
                )
            )
        return bars

    async def get_financials(self, symbol: str) -> Financials | None:
        annual = {"symbol": symbol, "period": "annual", "limit": STATEMENT_LIMIT}
        quarterly = {"symbol": symbol, "period": "quarter", "limit": STATEMENT_LIMIT}
        income, balance, income_q, balance_q = await asyncio.gather(
            self._fetch("income-statement", annual),
            self._fetch("balance-sheet-statement", annual),
            self._fetch_optional("income-statement", quarterly),
            self._fetch_optional("balance-sheet-statement", quarterly),
        )
        return Financials(
            income_annual=_periods(income, _income_period),
            balance_annual=_periods(balance, _balance_period),
            income_quarterly=_periods(income_q, _income_period),
            balance_quarterly=_periods(balance_q, _balance_period),
        )

    async def get_etf_profile(self, symbol: str) -> EtfProfile | None:
        params = {"symbol": symbol}
        info_rows, holding_rows = await asyncio.gather(
            self._fetch("etf/info", params),
            self._fetch("etf/holdings", params),
            return_exceptions=True,
        )
        if isinstance(info_rows, BaseException) and isinstance(holding_rows, BaseException):
            raise info_rows
        info = {} if isinstance(info_rows, BaseException) else _first(info_rows)
        if isinstance(holding_rows, BaseException) or not isinstance(holding_rows, list):
            holding_rows = []

        holdings = [
            EtfHolding(
                symbol=safe_str(row.get("asset")) or safe_str(row.get("symbol")),
                name=safe_str(row.get("name")),
                weight=percent_to_fraction(row.get("weightPercentage")),
            )
            for row in holding_rows
            if isinstance(row, dict)
        ]
        return EtfProfile(
            expense_ratio=percent_to_fraction(info.get("expenseRatio")),
            holdings=holdings,
        )

    async def search_symbols(self, query: str, limit: int = 10) -> list[SymbolMatch]:
        rows = await self._fetch("search-symbol", {"query": query, "limit": limit})
        matches = []
        for row in rows if isinstance(rows, list) else []:
            symbol = safe_str(row.get("symbol"))
            if not symbol:
                continue
            matches.append(
                SymbolMatch(
                    symbol=symbol,
                    name=safe_str(row.get("name")),
                    exchange=safe_str(row.get("exchange")),
                    quote_type=None,
                )
            )
        return matches[:limit]
