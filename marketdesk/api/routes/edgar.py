"""SEC EDGAR routes."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from marketdesk.api.dependencies import get_dashboard
from marketdesk.domain import Company, Envelope, FilingsListing
from marketdesk.services.dashboard import MarketDashboard


router = APIRouter()


@router.get("/companies", response_model=Envelope[list[Company]], summary="Find companies")
async def search_company(
    q: str = Query("", description="Ticker or company name"),
    dashboard: MarketDashboard = Depends(get_dashboard),
) -> Envelope[list[Company]]:
    return await dashboard.search_edgar_company(q)


@router.get(
    "/filings/{cik}",
    response_model=Envelope[FilingsListing],
    summary="List filings",
    description="Served from the local record unless `refresh=true`. "
    "Repeat `forms` to filter (e.g. `forms=10-K&forms=10-Q`).",
)
async def list_filings(
    cik: str,
    forms: list[str] = Query(default=[]),
    refresh: bool = False,
    dashboard: MarketDashboard = Depends(get_dashboard),
) -> Envelope[FilingsListing]:
    return await dashboard.list_filings(cik, forms, refresh)


@router.post(
    "/filings/{cik}/{accession_number}/document",
    response_model=Envelope[None],
    summary="Download a filing document",
)
async def download_filing_document(
    cik: str,
    accession_number: str,
    primary_document: Optional[str] = None,
    dashboard: MarketDashboard = Depends(get_dashboard),
) -> Envelope[None]:
    return await dashboard.download_filing_document(cik, accession_number, primary_document)
