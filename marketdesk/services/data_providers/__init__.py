"""Market data providers.

Usage:
    from marketdesk.services.data_providers import FmpDataProvider, YahooDataProvider
"""

from .base import MarketDataProvider
from .fmp_service import FmpDataProvider
from .yahoo_service import YahooDataProvider


__all__ = [
    "MarketDataProvider",
    "FmpDataProvider",
    "YahooDataProvider",
]
