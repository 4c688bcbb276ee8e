"""ETF domain models.

Expense ratios and holding weights are always fractions (0.0003 = 0.03%).
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class EtfHolding(BaseModel):
    """One top holding of a fund."""

    symbol: str | None = None
    name: str | None = None
    # Leveraged and inverse funds report swap legs above 1 and cash legs below 0
    weight: float | None = Field(None, description="Weight as a fraction")


class EtfProfile(BaseModel):
    """Fund cost and composition."""

    expense_ratio: float | None = Field(
        None, ge=0, le=1, description="Annual expense ratio as a fraction"
    )
    holdings: list[EtfHolding] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return self.expense_ratio is None and not self.holdings
