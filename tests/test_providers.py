"""Tests for the FMP and Yahoo provider adapters.

FMP is exercised through an httpx MockTransport; the Yahoo libraries are
patched where the adapter imports them.
"""

from __future__ import annotations

from datetime import date
from unittest.mock import MagicMock, patch

import httpx
import pandas as pd
import pytest

from marketdesk.core.exceptions import (
    DecodeError,
    HttpError,
    ProviderUnavailableError,
)
from marketdesk.services.data_providers import FmpDataProvider, YahooDataProvider


YAHOO = "marketdesk.services.data_providers.yahoo_service"


class FmpStub:
    """Routes requests by the endpoint path after /stable/."""

    def __init__(self, routes: dict[str, httpx.Response | dict | list]):
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        endpoint = request.url.path.split("/stable/", 1)[1]
        route = self.routes.get(endpoint)
        if route is None:
            return httpx.Response(404)
        if isinstance(route, httpx.Response):
            return route
        return httpx.Response(200, json=route)

    def endpoints(self) -> list[str]:
        return [r.url.path.split("/stable/", 1)[1] for r in self.requests]


def fmp(stub: FmpStub, api_key: str = "secret") -> FmpDataProvider:
    return FmpDataProvider(api_key, transport=httpx.MockTransport(stub))


# =============================================================================
# FMP
# =============================================================================


class TestFmpQuote:
    """Tests for FmpDataProvider.get_quote."""

    @pytest.mark.asyncio
    async def test_maps_quote_profile_and_ratios(self):
        stub = FmpStub(
            {
                "quote": [
                    {
                        "symbol": "AAPL",
                        "name": "Apple Inc.",
                        "price": 200.0,
                        "previousClose": 195.0,
                        "marketCap": 3.0e12,
                        "volume": 50_000_000,
                        "yearHigh": 237.2,
                        "yearLow": 164.1,
                    }
                ],
                "profile": [{"companyName": "Apple Inc.", "isEtf": False}],
                "ratios-ttm": [
                    {"priceToEarningsRatioTTM": 31.5, "priceToBookRatioTTM": 48.0}
                ],
            }
        )

        quote = await fmp(stub).get_quote("AAPL")

        assert quote.symbol == "AAPL"
        assert quote.quote_kind == "EQUITY"
        assert quote.change == pytest.approx(5.0)
        assert quote.change_percent == pytest.approx(5.0 / 195.0 * 100)
        assert quote.fifty_two_week_high == 237.2
        assert quote.trailing_pe == 31.5
        assert quote.price_to_book == 48.0
        assert all(r.url.params["apikey"] == "secret" for r in stub.requests)

    @pytest.mark.asyncio
    async def test_etf_flag_comes_from_profile(self):
        stub = FmpStub(
            {
                "quote": [{"symbol": "VOO", "price": 500.0}],
                "profile": [{"companyName": "Vanguard S&P 500 ETF", "isEtf": True}],
            }
        )

        quote = await fmp(stub).get_quote("VOO")

        assert quote.is_etf
        assert quote.name == "Vanguard S&P 500 ETF"

    @pytest.mark.asyncio
    async def test_missing_ratios_fall_back_to_quote_pe(self):
        stub = FmpStub({"quote": [{"symbol": "AAPL", "price": 1.0, "pe": 20.0}]})

        quote = await fmp(stub).get_quote("AAPL")

        assert quote.trailing_pe == 20.0

    @pytest.mark.asyncio
    async def test_empty_list_returns_none(self):
        assert await fmp(FmpStub({"quote": []})).get_quote("ZZZZ") is None


class TestFmpErrors:
    """HTTP failures are mapped onto error kinds."""

    @pytest.mark.asyncio
    async def test_missing_key_is_unavailable_without_request(self):
        stub = FmpStub({})
        provider = fmp(stub, api_key="  ")

        assert not provider.is_configured()
        with pytest.raises(ProviderUnavailableError):
            await provider.search_symbols("apple")
        assert stub.requests == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [401, 403])
    async def test_rejected_key_is_unavailable(self, status):
        stub = FmpStub({"search-symbol": httpx.Response(status)})

        with pytest.raises(ProviderUnavailableError):
            await fmp(stub).search_symbols("apple")

    @pytest.mark.asyncio
    async def test_server_error_does_not_leak_api_key(self):
        stub = FmpStub({"search-symbol": httpx.Response(500)})

        with pytest.raises(HttpError) as exc_info:
            await fmp(stub).search_symbols("apple")

        assert exc_info.value.status == 500
        assert "secret" not in exc_info.value.message

    @pytest.mark.asyncio
    async def test_error_message_body_is_unavailable(self):
        stub = FmpStub({"search-symbol": {"Error Message": "Limit Reach"}})

        with pytest.raises(ProviderUnavailableError):
            await fmp(stub).search_symbols("apple")

    @pytest.mark.asyncio
    async def test_malformed_json_is_decode_error(self):
        stub = FmpStub({"search-symbol": httpx.Response(200, content=b"<html>")})

        with pytest.raises(DecodeError):
            await fmp(stub).search_symbols("apple")


class TestFmpData:
    @pytest.mark.asyncio
    async def test_historical_accepts_legacy_wrapper(self):
        stub = FmpStub(
            {
                "historical-price-eod/full": {
                    "symbol": "AAPL",
                    "historical": [
                        {"date": "2024-01-03", "open": 1, "high": 2, "low": 0.5, "close": 1.5, "volume": 10},
                        {"date": "2024-01-02", "open": 1, "high": 2, "low": 0.5, "close": 1.2, "volume": 10},
                    ],
                }
            }
        )

        bars = await fmp(stub).get_historical("AAPL", date(2024, 1, 1), date(2024, 1, 31))

        assert {b.date for b in bars} == {date(2024, 1, 2), date(2024, 1, 3)}
        params = stub.requests[0].url.params
        assert params["from"] == "2024-01-01" and params["to"] == "2024-01-31"

    @pytest.mark.asyncio
    async def test_etf_percentages_become_fractions(self):
        stub = FmpStub(
            {
                "etf/info": [{"symbol": "VOO", "expenseRatio": 0.03}],
                "etf/holdings": [
                    {"asset": "AAPL", "name": "Apple Inc.", "weightPercentage": 7.5},
                    {"asset": "MSFT", "name": "Microsoft", "weightPercentage": 6.8},
                ],
            }
        )

        profile = await fmp(stub).get_etf_profile("VOO")

        assert profile.expense_ratio == pytest.approx(0.0003)
        assert profile.holdings[0].weight == pytest.approx(0.075)
        assert profile.holdings[1].symbol == "MSFT"

    @pytest.mark.asyncio
    async def test_leveraged_fund_weights_outside_unit_range_are_kept(self):
        stub = FmpStub(
            {
                "etf/info": [{"symbol": "TQQQ", "expenseRatio": 0.84}],
                "etf/holdings": [
                    {"asset": "AAPL", "weightPercentage": 8.0},
                    {"asset": "NDX SWAP", "weightPercentage": 135.2},
                    {"asset": "CASH", "weightPercentage": -42.0},
                ],
            }
        )

        profile = await fmp(stub).get_etf_profile("TQQQ")

        assert [h.weight for h in profile.holdings] == [
            pytest.approx(0.08),
            pytest.approx(1.352),
            pytest.approx(-0.42),
        ]

    @pytest.mark.asyncio
    async def test_etf_holdings_alone_are_enough(self):
        stub = FmpStub({"etf/holdings": [{"asset": "AAPL", "weightPercentage": 7.5}]})

        profile = await fmp(stub).get_etf_profile("VOO")

        assert profile.expense_ratio is None
        assert len(profile.holdings) == 1

    @pytest.mark.asyncio
    async def test_financials_sorted_newest_first(self):
        stub = FmpStub(
            {
                "income-statement": [
                    {"date": "2023-09-30", "revenue": 383e9, "netIncome": 97e9},
                    {"date": "2024-09-28", "revenue": 391e9, "netIncome": 94e9},
                ],
                "balance-sheet-statement": [
                    {"date": "2024-09-28", "totalAssets": 365e9, "totalLiabilities": 308e9,
                     "totalStockholdersEquity": 57e9},
                ],
            }
        )

        financials = await fmp(stub).get_financials("AAPL")

        assert [p.period_end.year for p in financials.income_annual] == [2024, 2023]
        assert financials.balance_annual[0].total_equity == 57e9


# =============================================================================
# Yahoo
# =============================================================================


class TestYahooQuote:
    @pytest.mark.asyncio
    async def test_maps_info_fields(self):
        info = {
            "symbol": "SPY",
            "shortName": "SPDR S&P 500",
            "quoteType": "ETF",
            "regularMarketPrice": 510.0,
            "regularMarketPreviousClose": 500.0,
            "fiftyTwoWeekHigh": 520.0,
            "trailingPE": 25.0,
        }
        with patch(f"{YAHOO}.yf.Ticker") as ticker_cls:
            ticker_cls.return_value.info = info
            quote = await YahooDataProvider().get_quote("SPY")

        assert quote.is_etf
        assert quote.price == 510.0
        assert quote.change == pytest.approx(10.0)
        assert quote.change_percent == pytest.approx(2.0)
        assert quote.trailing_pe == 25.0

    @pytest.mark.asyncio
    async def test_library_errors_become_unavailable(self):
        with patch(f"{YAHOO}.yf.Ticker", side_effect=RuntimeError("blocked")):
            with pytest.raises(ProviderUnavailableError):
                await YahooDataProvider().get_quote("AAPL")


class TestYahooHistory:
    @pytest.mark.asyncio
    async def test_end_date_is_inclusive(self):
        frame = pd.DataFrame(
            {
                "Open": [1.0, 2.0],
                "High": [1.5, 2.5],
                "Low": [0.5, 1.5],
                "Close": [1.2, 2.2],
                "Volume": [100, 200],
            },
            index=pd.DatetimeIndex(["2024-01-02", "2024-01-03"]),
        )
        with patch(f"{YAHOO}.yf.Ticker") as ticker_cls:
            ticker_cls.return_value.history.return_value = frame
            bars = await YahooDataProvider().get_historical(
                "AAPL", date(2024, 1, 2), date(2024, 1, 3)
            )

        kwargs = ticker_cls.return_value.history.call_args.kwargs
        assert kwargs["end"] == "2024-01-04"
        assert [b.date for b in bars] == [date(2024, 1, 2), date(2024, 1, 3)]
        assert bars[1].volume == 200


class TestYahooFinancials:
    @pytest.mark.asyncio
    async def test_reads_statement_rows_and_skips_empty_columns(self):
        income = pd.DataFrame(
            {
                pd.Timestamp("2024-09-30"): [391e9, 94e9],
                pd.Timestamp("2023-09-30"): [383e9, 97e9],
                pd.Timestamp("2019-09-30"): [float("nan"), float("nan")],
            },
            index=["Total Revenue", "Net Income"],
        )
        with patch(f"{YAHOO}.yf.Ticker") as ticker_cls:
            ticker = ticker_cls.return_value
            ticker.income_stmt = income
            ticker.balance_sheet = pd.DataFrame()
            ticker.quarterly_income_stmt = pd.DataFrame()
            ticker.quarterly_balance_sheet = pd.DataFrame()
            financials = await YahooDataProvider().get_financials("AAPL")

        assert [p.period_end.year for p in financials.income_annual] == [2024, 2023]
        assert financials.income_annual[0].revenue == 391e9
        assert financials.balance_annual == []


class TestYahooEtf:
    @pytest.mark.asyncio
    async def test_reads_holdings_and_expense_ratio(self):
        ticker = MagicMock()
        ticker.fund_holding_info = {
            "VOO": {"holdings": [{"symbol": "AAPL", "holdingName": "Apple", "holdingPercent": 0.07}]}
        }
        ticker.fund_profile = {
            "VOO": {"feesExpensesInvestment": {"annualReportExpenseRatio": 0.0003}}
        }
        with patch(f"{YAHOO}.Ticker", return_value=ticker):
            profile = await YahooDataProvider().get_etf_profile("VOO")

        assert profile.expense_ratio == 0.0003
        assert profile.holdings[0].weight == 0.07

    @pytest.mark.asyncio
    async def test_error_strings_mean_no_data(self):
        ticker = MagicMock()
        ticker.fund_holding_info = {"AAPL": "No fundamentals data found for symbol: AAPL"}
        ticker.fund_profile = {"AAPL": "No fundamentals data found for symbol: AAPL"}
        with patch(f"{YAHOO}.Ticker", return_value=ticker):
            assert await YahooDataProvider().get_etf_profile("AAPL") is None


class TestYahooSearch:
    @pytest.mark.asyncio
    async def test_maps_search_quotes(self):
        with patch(f"{YAHOO}.yf.Search") as search_cls:
            search_cls.return_value.quotes = [
                {"symbol": "AAPL", "shortname": "Apple Inc.", "exchDisp": "NASDAQ", "quoteType": "EQUITY"},
                {"longname": "no symbol"},
            ]
            matches = await YahooDataProvider().search_symbols("apple", limit=5)

        search_cls.assert_called_once_with("apple", max_results=5)
        assert [m.symbol for m in matches] == ["AAPL"]
        assert matches[0].exchange == "NASDAQ"
