"""Price domain models.

Type-safe representations of daily price history.
"""

from __future__ import annotations

from datetime import date as DateType
from typing import Iterable

from pydantic import BaseModel, Field


class HistoricalBar(BaseModel):
    """Single daily OHLCV bar."""

    date: DateType = Field(..., description="Trading date")
    open: float | None = Field(None, ge=0, description="Opening price")
    high: float | None = Field(None, ge=0, description="High price")
    low: float | None = Field(None, ge=0, description="Low price")
    close: float | None = Field(None, ge=0, description="Closing price")
    volume: int | None = Field(default=None, ge=0, description="Trading volume")


def normalize_bars(bars: Iterable[HistoricalBar]) -> list[HistoricalBar]:
    """Sort bars ascending by date, keeping the last bar seen for a repeated date."""
    by_date: dict[DateType, HistoricalBar] = {}
    for bar in bars:
        by_date[bar.date] = bar
    return [by_date[day] for day in sorted(by_date)]
