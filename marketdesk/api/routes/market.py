"""Market data routes: symbol search, quotes, history, statements, ETFs."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from marketdesk.api.dependencies import get_dashboard
from marketdesk.domain import (
    Envelope,
    EtfProfile,
    Financials,
    HistoricalBar,
    Quote,
    SymbolMatch,
)
from marketdesk.services.dashboard import MarketDashboard


router = APIRouter()


@router.get(
    "/search",
    response_model=Envelope[list[SymbolMatch]],
    summary="Search symbols",
)
async def search_symbol(
    q: str = Query("", description="Ticker or company name"),
    dashboard: MarketDashboard = Depends(get_dashboard),
) -> Envelope[list[SymbolMatch]]:
    return await dashboard.search_symbol(q)


@router.get("/quote/{symbol}", response_model=Envelope[Quote], summary="Latest quote")
async def get_quote(
    symbol: str,
    dashboard: MarketDashboard = Depends(get_dashboard),
) -> Envelope[Quote]:
    return await dashboard.get_quote(symbol)


@router.get(
    "/historical/{symbol}",
    response_model=Envelope[list[HistoricalBar]],
    summary="Daily price history",
    description="Daily bars between `from` and `to` (both inclusive, YYYY-MM-DD).",
)
async def get_historical(
    symbol: str,
    from_date: str = Query(..., alias="from"),
    to_date: str = Query(..., alias="to"),
    dashboard: MarketDashboard = Depends(get_dashboard),
) -> Envelope[list[HistoricalBar]]:
    return await dashboard.get_historical(symbol, from_date, to_date)


@router.get(
    "/financials/{symbol}",
    response_model=Envelope[Financials],
    summary="Income statements and balance sheets",
)
async def get_financials(
    symbol: str,
    dashboard: MarketDashboard = Depends(get_dashboard),
) -> Envelope[Financials]:
    return await dashboard.get_financials(symbol)


@router.get("/etf/{symbol}", response_model=Envelope[EtfProfile], summary="ETF details")
async def get_etf_details(
    symbol: str,
    dashboard: MarketDashboard = Depends(get_dashboard),
) -> Envelope[EtfProfile]:
    return await dashboard.get_etf_details(symbol)
