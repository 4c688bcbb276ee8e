"""MarketDesk: market data, SEC filings and price alerts for the desktop dashboard."""

__version__ = "1.0.0"
