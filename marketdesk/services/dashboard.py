"""
Dashboard facade: the request/response contract exposed to the desktop UI.

Every operation is async and returns an ``Envelope``; no exception crosses
this boundary.

Usage:
    from marketdesk.services.dashboard import get_dashboard

    dashboard = get_dashboard()
    envelope = await dashboard.get_quote("MSFT")
"""

from __future__ import annotations

from typing import Any, Awaitable, Iterable, Optional

from marketdesk.cache import JsonFileStore
from marketdesk.core.config import Settings, get_settings
from marketdesk.core.exceptions import AppException
from marketdesk.core.logging import get_logger
from marketdesk.domain import (
    AlertCreate,
    AlertUpdate,
    Company,
    Envelope,
    EtfProfile,
    FilingsListing,
    Financials,
    HistoricalBar,
    PriceAlert,
    Quote,
    SymbolMatch,
)
from marketdesk.services.alerts import AlertEvaluator, AlertStore, build_notifier
from marketdesk.services.data_providers import FmpDataProvider, YahooDataProvider
from marketdesk.services.edgar import (
    EdgarCompanyResolver,
    FilingDocumentLocator,
    FilingsStore,
    RateLimitedHttpClient,
    RequestScheduler,
)
from marketdesk.services.market_data import MarketDataGateway

logger = get_logger("dashboard")


async def _capture(operation: str, awaitable: Awaitable[Any]) -> Envelope:
    """Await ``awaitable`` and wrap its result or failure in an Envelope."""
    try:
        data = await awaitable
    except AppException as e:
        logger.warning(f"{operation} failed: {e.error_kind.value}: {e.message}")
        return Envelope.from_exception(e)
    except Exception as e:
        logger.exception(f"{operation} failed unexpectedly")
        return Envelope.from_exception(e)
    return Envelope.success(data)


class MarketDashboard:
    def __init__(
        self,
        gateway: MarketDataGateway,
        companies: EdgarCompanyResolver,
        filings: FilingsStore,
        documents: FilingDocumentLocator,
        alerts: AlertStore,
        evaluator: AlertEvaluator,
        edgar_client: Optional[RateLimitedHttpClient] = None,
    ):
        self.gateway = gateway
        self.companies = companies
        self.filings = filings
        self.documents = documents
        self.alerts = alerts
        self.evaluator = evaluator
        self.edgar_client = edgar_client

    async def aclose(self) -> None:
        await self.gateway.aclose()
        if self.edgar_client is not None:
            await self.edgar_client.aclose()

    # =========================================================================
    # Market data
    # =========================================================================

    async def search_symbol(self, query: str) -> Envelope[list[SymbolMatch]]:
        return await self.gateway.search_symbols(query)

    async def get_quote(self, symbol: str) -> Envelope[Quote]:
        return await self.gateway.get_quote(symbol)

    async def get_historical(
        self, symbol: str, from_date: Any, to_date: Any
    ) -> Envelope[list[HistoricalBar]]:
        return await self.gateway.get_historical(symbol, from_date, to_date)

    async def get_financials(self, symbol: str) -> Envelope[Financials]:
        return await self.gateway.get_financials(symbol)

    async def get_etf_details(self, symbol: str) -> Envelope[EtfProfile]:
        return await self.gateway.get_etf_profile(symbol)

    # =========================================================================
    # SEC EDGAR
    # =========================================================================

    async def search_edgar_company(self, query: str) -> Envelope[list[Company]]:
        return await _capture("searchEdgarCompany", self.companies.search(query))

    async def list_filings(
        self,
        cik: Any,
        forms: Optional[Iterable[str]] = None,
        force_refresh: bool = False,
    ) -> Envelope[FilingsListing]:
        envelope = await _capture(
            "listFilings", self.filings.list_filings(cik, forms, force_refresh)
        )
        if envelope.ok:
            envelope.fetched_at = envelope.data.last_fetched_at
        return envelope

    async def download_filing_document(
        self,
        cik: Any,
        accession_number: str,
        primary_document: Optional[str] = None,
    ) -> Envelope[None]:
        envelope = await _capture(
            "downloadFilingDocument",
            self.documents.download(cik, accession_number, primary_document),
        )
        if envelope.ok:
            path = envelope.data
            return Envelope.success(path=str(path))
        return envelope

    # =========================================================================
    # Alerts
    # =========================================================================

    async def list_alerts(self, symbol: Optional[str] = None) -> Envelope[list[PriceAlert]]:
        return await _capture("listAlerts", self.alerts.list_alerts(symbol))

    async def create_alert(self, payload: AlertCreate | dict[str, Any]) -> Envelope[PriceAlert]:
        return await _capture("createAlert", self.alerts.create(payload))

    async def update_alert(
        self, alert_id: str, changes: AlertUpdate | dict[str, Any]
    ) -> Envelope[PriceAlert]:
        return await _capture("updateAlert", self.alerts.update(alert_id, changes))

    async def delete_alert(self, alert_id: str) -> Envelope[dict[str, str]]:
        async def delete() -> dict[str, str]:
            await self.alerts.delete(alert_id)
            return {"id": alert_id}

        return await _capture("deleteAlert", delete())


def build_dashboard(settings: Settings) -> MarketDashboard:
    """Wire every component from settings."""
    gateway = MarketDataGateway(
        primary=FmpDataProvider(
            settings.fmp_api_key,
            base_url=settings.fmp_base_url,
            timeout=settings.external_api_timeout,
        ),
        secondary=YahooDataProvider(),
        ttl=settings.response_cache_ttl,
        max_entries=settings.response_cache_max_entries,
    )
    if not gateway.primary.is_configured():
        logger.info("FMP_API_KEY not set; market data will come from Yahoo Finance")

    edgar_client = RateLimitedHttpClient(
        RequestScheduler(min_interval=settings.edgar_min_interval_ms / 1000),
        user_agent=settings.sec_user_agent,
        max_retries=settings.edgar_max_retries,
        backoff_seconds=settings.edgar_retry_backoff_ms / 1000,
        timeout=settings.external_api_timeout,
    )
    alerts = AlertStore(settings.alerts_path)

    return MarketDashboard(
        gateway=gateway,
        companies=EdgarCompanyResolver(
            edgar_client,
            JsonFileStore(settings.ticker_directory_path),
            limit=settings.company_search_limit,
        ),
        filings=FilingsStore(
            edgar_client,
            settings.filings_dir,
            fetch_all_pages=settings.edgar_fetch_all_pages,
        ),
        documents=FilingDocumentLocator(edgar_client, settings.documents_dir),
        alerts=alerts,
        evaluator=AlertEvaluator(
            alerts, gateway.get_quote, build_notifier(settings.alert_notify_urls)
        ),
        edgar_client=edgar_client,
    )


_dashboard: MarketDashboard | None = None


def get_dashboard() -> MarketDashboard:
    """Get the process-wide dashboard singleton."""
    global _dashboard
    if _dashboard is None:
        _dashboard = build_dashboard(get_settings())
    return _dashboard


async def close_dashboard() -> None:
    global _dashboard
    if _dashboard is not None:
        await _dashboard.aclose()
        _dashboard = None
