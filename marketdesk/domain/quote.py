"""Quote domain models.

Canonical quote shape returned by every market data provider.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator


QuoteKind = Literal["EQUITY", "ETF"]


class Quote(BaseModel):
    """Latest quote for a stock or ETF.

    All numeric fields are optional because providers disagree on availability.
    When both ``price`` and ``previous_close`` are known the change fields are
    derived from them; otherwise the provider-supplied change fields are kept
    as they are.
    """

    symbol: str = Field(..., description="Ticker symbol (uppercase)")
    name: str | None = Field(None, description="Display name")
    quote_kind: QuoteKind = Field(default="EQUITY", description="Equity or ETF")

    price: float | None = Field(None, description="Last traded price")
    previous_close: float | None = Field(None, description="Previous session close")
    change: float | None = Field(None, description="Absolute change vs previous close")
    change_percent: float | None = Field(None, description="Change in percent (1.5 = 1.5%)")

    market_cap: float | None = Field(None, ge=0)
    volume: int | None = Field(None, ge=0)
    day_high: float | None = None
    day_low: float | None = None
    fifty_two_week_high: float | None = None
    fifty_two_week_low: float | None = None

    trailing_pe: float | None = None
    forward_pe: float | None = None
    price_to_book: float | None = None
    price_to_sales: float | None = None

    @model_validator(mode="before")
    @classmethod
    def derive_change(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        price = data.get("price")
        previous_close = data.get("previous_close")
        if price is None or previous_close is None:
            return data
        change = float(price) - float(previous_close)
        derived = dict(data)
        derived["change"] = change
        derived["change_percent"] = (
            change / float(previous_close) * 100 if previous_close else None
        )
        return derived

    @property
    def is_empty(self) -> bool:
        return self.price is None

    @property
    def is_etf(self) -> bool:
        return self.quote_kind == "ETF"


class SymbolMatch(BaseModel):
    """One symbol search hit."""

    symbol: str
    name: str | None = None
    exchange: str | None = None
    quote_type: str | None = None
