"""Price alert domain models."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field, field_validator


AlertCondition = Literal["above", "below"]


class PriceAlert(BaseModel):
    """A stored price alert.

    ``above`` fires when the price reaches or exceeds the target,
    ``below`` fires when it reaches or drops under it.
    """

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    symbol: str = Field(..., min_length=1)
    condition: AlertCondition
    target_price: float = Field(..., gt=0, allow_inf_nan=False)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("symbol")
    @classmethod
    def normalize_symbol(cls, v: str) -> str:
        symbol = v.strip().upper()
        if not symbol:
            raise ValueError("symbol must not be blank")
        return symbol


class AlertCreate(BaseModel):
    """Payload for creating an alert."""

    symbol: str
    condition: AlertCondition
    target_price: float


class AlertUpdate(BaseModel):
    """Payload for changing an alert; omitted fields stay as they are."""

    condition: AlertCondition | None = None
    target_price: float | None = None
