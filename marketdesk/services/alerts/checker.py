"""Price alert evaluation engine.

Runs periodically (see ``marketdesk.jobs.scheduler``) to check every stored
alert against the current price.

Per cycle:
    1. Group alerts by symbol so each symbol is quoted once.
    2. A failed quote skips that symbol's alerts; they stay stored untouched.
    3. Each triggered alert is notified, then removed. A notification failure
       is logged and never blocks the removal.
    4. The store is rewritten once, and only if something triggered.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

from marketdesk.core.logging import get_logger
from marketdesk.domain import Envelope, PriceAlert, Quote

from .sender import Notifier
from .store import AlertStore
from .triggers import build_alert_message, is_triggered


logger = get_logger("alerts.checker")

QuoteSource = Callable[[str], Awaitable[Envelope[Quote]]]


@dataclass
class AlertCycleReport:
    """Statistics about one evaluation cycle."""

    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    alerts_checked: int = 0
    symbols_checked: int = 0
    skipped_symbols: list[str] = field(default_factory=list)
    triggered: list[PriceAlert] = field(default_factory=list)
    notifications_failed: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "started_at": self.started_at.isoformat(),
            "alerts_checked": self.alerts_checked,
            "symbols_checked": self.symbols_checked,
            "skipped_symbols": list(self.skipped_symbols),
            "alerts_triggered": len(self.triggered),
            "notifications_failed": self.notifications_failed,
        }


class AlertEvaluator:
    def __init__(self, store: AlertStore, get_quote: QuoteSource, notifier: Notifier):
        self.store = store
        self.get_quote = get_quote
        self.notifier = notifier

    async def _current_price(self, symbol: str) -> float | None:
        try:
            envelope = await self.get_quote(symbol)
        except Exception:
            logger.exception(f"Quote lookup raised for {symbol}")
            return None
        if not envelope.ok or envelope.data is None:
            logger.warning(f"Skipping alerts for {symbol}: {envelope.error}")
            return None
        if envelope.data.price is None:
            logger.warning(f"Skipping alerts for {symbol}: quote has no price")
        return envelope.data.price

    async def _notify(self, alert: PriceAlert, price: float) -> bool:
        title, body = build_alert_message(alert, price)
        try:
            sent, error = await self.notifier.notify(title, body)
        except Exception:
            logger.exception(f"Notification for alert {alert.id} raised")
            return False
        if not sent:
            logger.warning(f"Notification for alert {alert.id} failed: {error}")
        return sent

    async def run_cycle(self) -> AlertCycleReport:
        report = AlertCycleReport()
        alerts = await self.store.list_alerts()
        report.alerts_checked = len(alerts)
        if not alerts:
            logger.debug("No alerts to check")
            return report

        by_symbol: dict[str, list[PriceAlert]] = defaultdict(list)
        for alert in alerts:
            by_symbol[alert.symbol].append(alert)

        for symbol, group in by_symbol.items():
            report.symbols_checked += 1
            price = await self._current_price(symbol)
            if price is None:
                report.skipped_symbols.append(symbol)
                continue

            for alert in group:
                if not is_triggered(alert, price):
                    continue
                logger.info(
                    f"Alert {alert.id} triggered: {symbol} {alert.condition} "
                    f"{alert.target_price} at {price}"
                )
                report.triggered.append(alert)
                if not await self._notify(alert, price):
                    report.notifications_failed += 1

        if report.triggered:
            await self.store.remove_fired(report.triggered)

        logger.info(
            f"Alert cycle: {report.alerts_checked} alerts, "
            f"{len(report.triggered)} triggered, {len(report.skipped_symbols)} symbols skipped"
        )
        return report
