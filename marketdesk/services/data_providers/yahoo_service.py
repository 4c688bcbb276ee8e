"""
Yahoo Finance provider - secondary market data source.

yfinance covers quotes, daily history, statements and symbol search;
yahooquery covers fund holdings and expense ratios, which yfinance does not
expose reliably. Both libraries are blocking, so every call runs in a shared
ThreadPoolExecutor.

Yahoo already reports fund weights and expense ratios as fractions.
"""

from __future__ import annotations

import asyncio
from concurrent.futures import ThreadPoolExecutor
from datetime import date, timedelta
from typing import Any, Callable, Optional

import pandas as pd
import yfinance as yf
from yahooquery import Ticker

from marketdesk.core.data_helpers import safe_date, safe_float, safe_int, safe_str
from marketdesk.core.exceptions import AppException, ProviderUnavailableError
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

logger = get_logger("data_providers.yahoo")

# Single shared executor for all blocking Yahoo calls
_executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="yahoo")

FUND_QUOTE_TYPES = {"ETF", "MUTUALFUND"}

# Statement row labels in preference order (labels differ across filers)
INCOME_ROWS: dict[str, tuple[str, ...]] = {
    "revenue": ("Total Revenue", "Operating Revenue"),
    "gross_profit": ("Gross Profit",),
    "operating_income": ("Operating Income", "Total Operating Income As Reported"),
    "net_income": ("Net Income", "Net Income Common Stockholders"),
}
BALANCE_ROWS: dict[str, tuple[str, ...]] = {
    "total_assets": ("Total Assets",),
    "total_liabilities": ("Total Liabilities Net Minority Interest", "Total Liabilities"),
    "total_equity": ("Stockholders Equity", "Common Stock Equity"),
}


def _is_valid_response(data: Any) -> bool:
    """Check if yahooquery returned valid data (not an error message)."""
    if data is None:
        return False
    if isinstance(data, str):
        # yahooquery returns error strings like "Quote not found for ticker symbol: XYZ"
        return False
    if isinstance(data, dict) and "error" in data:
        return False
    return True


def _statement_periods(
    frame: Optional[pd.DataFrame], rows: dict[str, tuple[str, ...]]
) -> list[FinancialPeriod]:
    """Convert a yfinance statement frame (rows=line items, columns=period ends)."""
    if frame is None or frame.empty:
        return []

    periods = []
    for column in frame.columns:
        period_end = safe_date(column)
        if period_end is None:
            continue
        values: dict[str, Optional[float]] = {}
        for field_name, labels in rows.items():
            value = None
            for label in labels:
                if label in frame.index:
                    value = safe_float(frame.at[label, column])
                    if value is not None:
                        break
            values[field_name] = value
        # Yahoo pads statements with all-NaN columns for missing years
        if all(v is None for v in values.values()):
            continue
        periods.append(FinancialPeriod(period_end=period_end, **values))
    return sort_periods(periods)


class YahooDataProvider(MarketDataProvider):
    """Market data from Yahoo Finance (yfinance + yahooquery)."""

    name = "yahoo"

    async def _run(self, func: Callable[..., Any], *args: Any) -> Any:
        """Run a blocking fetch in the executor, mapping library errors."""
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(_executor, func, *args)
        except AppException:
            raise
        except Exception as e:
            raise ProviderUnavailableError(
                f"Yahoo Finance call {func.__name__} failed: {e}"
            ) from e

    # =========================================================================
    # Quote
    # =========================================================================

    def _fetch_quote_sync(self, symbol: str) -> Optional[Quote]:
        info = yf.Ticker(symbol).info
        if not info:
            return None

        price = info.get("regularMarketPrice")
        if price is None:
            price = info.get("currentPrice")
        previous_close = info.get("regularMarketPreviousClose")
        if previous_close is None:
            previous_close = info.get("previousClose")

        quote_type = (safe_str(info.get("quoteType")) or "").upper()
        return Quote(
            symbol=safe_str(info.get("symbol")) or symbol,
            name=safe_str(info.get("shortName")) or safe_str(info.get("longName")),
            quote_kind="ETF" if quote_type in FUND_QUOTE_TYPES else "EQUITY",
            price=safe_float(price),
            previous_close=safe_float(previous_close),
            change=safe_float(info.get("regularMarketChange")),
            change_percent=safe_float(info.get("regularMarketChangePercent")),
            market_cap=safe_float(info.get("marketCap")),
            volume=safe_int(info.get("regularMarketVolume", info.get("volume"))),
            day_high=safe_float(info.get("dayHigh")),
            day_low=safe_float(info.get("dayLow")),
            fifty_two_week_high=safe_float(info.get("fiftyTwoWeekHigh")),
            fifty_two_week_low=safe_float(info.get("fiftyTwoWeekLow")),
            trailing_pe=safe_float(info.get("trailingPE")),
            forward_pe=safe_float(info.get("forwardPE")),
            price_to_book=safe_float(info.get("priceToBook")),
            price_to_sales=safe_float(info.get("priceToSalesTrailing12Months")),
        )

    async def get_quote(self, symbol: str) -> Quote | None:
        return await self._run(self._fetch_quote_sync, symbol)

    # =========================================================================
    # Price history
    # =========================================================================

    def _fetch_history_sync(
        self, symbol: str, start: date, end: date
    ) -> list[HistoricalBar]:
        # yfinance treats `end` as exclusive
        frame = yf.Ticker(symbol).history(
            start=start.isoformat(),
            end=(end + timedelta(days=1)).isoformat(),
            interval="1d",
            auto_adjust=False,
            actions=False,
        )
        if frame is None or frame.empty:
            return []

        bars = []
        for index, row in frame.iterrows():
            day = safe_date(index)
            if day is None:
                continue
            bars.append(
                HistoricalBar(
                    date=day,
                    open=safe_float(row.get("Open")),
                    high=safe_float(row.get("High")),
                    low=safe_float(row.get("Low")),
                    close=safe_float(row.get("Close")),
                    volume=safe_int(row.get("Volume")),
                )
            )
        return bars

    async def get_historical(
        self, symbol: str, start: date, end: date
    ) -> list[HistoricalBar]:
        return await self._run(self._fetch_history_sync, symbol, start, end)

    # =========================================================================
    # Financial statements
    # =========================================================================

    def _fetch_financials_sync(self, symbol: str) -> Financials:
        ticker = yf.Ticker(symbol)
        return Financials(
            income_annual=_statement_periods(ticker.income_stmt, INCOME_ROWS),
            balance_annual=_statement_periods(ticker.balance_sheet, BALANCE_ROWS),
            income_quarterly=_statement_periods(ticker.quarterly_income_stmt, INCOME_ROWS),
            balance_quarterly=_statement_periods(ticker.quarterly_balance_sheet, BALANCE_ROWS),
        )

    async def get_financials(self, symbol: str) -> Financials | None:
        return await self._run(self._fetch_financials_sync, symbol)

    # =========================================================================
    # ETF details
    # =========================================================================

    def _fetch_etf_sync(self, symbol: str) -> Optional[EtfProfile]:
        ticker = Ticker(symbol)

        holding_info = ticker.fund_holding_info
        holding_info = holding_info.get(symbol) if isinstance(holding_info, dict) else None
        fund_profile = ticker.fund_profile
        fund_profile = fund_profile.get(symbol) if isinstance(fund_profile, dict) else None

        if not _is_valid_response(holding_info) and not _is_valid_response(fund_profile):
            logger.debug(f"yahooquery has no fund data for {symbol}")
            return None

        holdings = []
        if _is_valid_response(holding_info):
            for row in holding_info.get("holdings") or []:
                holdings.append(
                    EtfHolding(
                        symbol=safe_str(row.get("symbol")),
                        name=safe_str(row.get("holdingName")),
                        weight=safe_float(row.get("holdingPercent")),
                    )
                )

        expense_ratio = None
        if _is_valid_response(fund_profile):
            fees = fund_profile.get("feesExpensesInvestment") or {}
            expense_ratio = safe_float(fees.get("annualReportExpenseRatio"))

        return EtfProfile(expense_ratio=expense_ratio, holdings=holdings)

    async def get_etf_profile(self, symbol: str) -> EtfProfile | None:
        return await self._run(self._fetch_etf_sync, symbol)

    # =========================================================================
    # Search
    # =========================================================================

    def _search_sync(self, query: str, limit: int) -> list[SymbolMatch]:
        search = yf.Search(query, max_results=limit)
        matches = []
        for row in search.quotes or []:
            symbol = safe_str(row.get("symbol"))
            if not symbol:
                continue
            matches.append(
                SymbolMatch(
                    symbol=symbol,
                    name=safe_str(row.get("shortname")) or safe_str(row.get("longname")),
                    exchange=safe_str(row.get("exchDisp")) or safe_str(row.get("exchange")),
                    quote_type=safe_str(row.get("quoteType")),
                )
            )
        return matches[:limit]

    async def search_symbols(self, query: str, limit: int = 10) -> list[SymbolMatch]:
        return await self._run(self._search_sync, query, limit)
