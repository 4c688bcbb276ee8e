"""Domain models for strongly-typed data throughout the application.

Pydantic models are the only shapes that leave the data layer, whichever
provider answered.

Usage:
    from marketdesk.domain import Quote, HistoricalBar, Envelope

    envelope = await gateway.get_quote("AAPL")
    if envelope.ok:
        quote: Quote = envelope.data
"""

from marketdesk.domain.alerts import AlertCondition, AlertCreate, AlertUpdate, PriceAlert
from marketdesk.domain.envelope import Envelope, ProviderAttempt
from marketdesk.domain.etf import EtfHolding, EtfProfile
from marketdesk.domain.filings import (
    Company,
    Filing,
    FilingsCacheRecord,
    FilingsListing,
    normalize_cik,
    pad_cik,
)
from marketdesk.domain.fundamentals import FinancialPeriod, Financials
from marketdesk.domain.price import HistoricalBar, normalize_bars
from marketdesk.domain.quote import Quote, QuoteKind, SymbolMatch

__all__ = [
    # Alerts
    "AlertCondition",
    "AlertCreate",
    "AlertUpdate",
    "PriceAlert",
    # Envelope
    "Envelope",
    "ProviderAttempt",
    # ETF
    "EtfHolding",
    "EtfProfile",
    # Filings
    "Company",
    "Filing",
    "FilingsCacheRecord",
    "FilingsListing",
    "normalize_cik",
    "pad_cik",
    # Fundamentals
    "FinancialPeriod",
    "Financials",
    # Price
    "HistoricalBar",
    "normalize_bars",
    # Quote
    "Quote",
    "QuoteKind",
    "SymbolMatch",
]
