"""Financial statement domain models."""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, Field


class FinancialPeriod(BaseModel):
    """One reporting period of an income statement or a balance sheet.

    Income statement periods fill the revenue/profit fields, balance sheet
    periods fill the assets/liabilities/equity fields.
    """

    period_end: date = Field(..., description="Period end date")

    # Income statement
    revenue: float | None = None
    gross_profit: float | None = None
    operating_income: float | None = None
    net_income: float | None = None

    # Balance sheet
    total_assets: float | None = None
    total_liabilities: float | None = None
    total_equity: float | None = None


class Financials(BaseModel):
    """Annual (and quarterly) statements for one symbol, newest period first."""

    income_annual: list[FinancialPeriod] = Field(default_factory=list)
    balance_annual: list[FinancialPeriod] = Field(default_factory=list)
    income_quarterly: list[FinancialPeriod] = Field(default_factory=list)
    balance_quarterly: list[FinancialPeriod] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (
            self.income_annual
            or self.balance_annual
            or self.income_quarterly
            or self.balance_quarterly
        )


def sort_periods(periods: list[FinancialPeriod]) -> list[FinancialPeriod]:
    """Newest period first."""
    return sorted(periods, key=lambda p: p.period_end, reverse=True)
