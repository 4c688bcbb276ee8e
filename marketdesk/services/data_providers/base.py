"""
Provider interface for market data sources.

The gateway depends only on this interface; every provider-specific detail
(endpoints, field names, percent conventions) stays inside the adapters.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date

from marketdesk.domain import EtfProfile, Financials, HistoricalBar, Quote, SymbolMatch


class MarketDataProvider(ABC):
    """A market data source returning canonical domain models.

    Methods may return None or an empty result when the source has nothing for
    the symbol; the gateway treats that the same as a failure.
    """

    name: str = "provider"

    def is_configured(self) -> bool:
        """False when the provider cannot be called at all (e.g. missing key)."""
        return True

    @abstractmethod
    async def get_quote(self, symbol: str) -> Quote | None: ...

    @abstractmethod
    async def get_historical(
        self, symbol: str, start: date, end: date
    ) -> list[HistoricalBar]: ...

    @abstractmethod
    async def get_financials(self, symbol: str) -> Financials | None: ...

    @abstractmethod
    async def get_etf_profile(self, symbol: str) -> EtfProfile | None: ...

    @abstractmethod
    async def search_symbols(self, query: str, limit: int = 10) -> list[SymbolMatch]: ...

    async def aclose(self) -> None:
        """Release network resources."""
