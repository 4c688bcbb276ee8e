"""Trigger evaluation for price alerts."""

from __future__ import annotations

from marketdesk.domain import PriceAlert


def is_triggered(alert: PriceAlert, price: float | None) -> bool:
    """Both conditions are inclusive: an exact match always fires."""
    if price is None:
        return False
    if alert.condition == "above":
        return price >= alert.target_price
    return price <= alert.target_price


def build_alert_message(alert: PriceAlert, price: float) -> tuple[str, str]:
    """Return (title, body) for a triggered alert."""
    direction = "risen above" if alert.condition == "above" else "fallen below"
    title = f"{alert.symbol} price alert"
    body = (
        f"{alert.symbol} has {direction} {alert.target_price:,.2f} "
        f"(current price {price:,.2f})."
    )
    return title, body
