"""Price alert persistence.

All alerts live in one JSON document (``{"alerts": [...]}``). Mutations are
serialized with a lock so a user edit and an evaluation cycle cannot
interleave their read-modify-write.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Iterable, Optional

from pydantic import ValidationError

from marketdesk.cache import JsonFileStore
from marketdesk.core.exceptions import InvalidInputError, NotFoundError
from marketdesk.core.logging import get_logger
from marketdesk.domain import AlertCreate, AlertUpdate, PriceAlert

logger = get_logger("alerts.store")


def _validation_message(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        field = ".".join(str(loc) for loc in item.get("loc", ()))
        parts.append(f"{field}: {item.get('msg')}" if field else str(item.get("msg")))
    return "; ".join(parts) or "Invalid alert"


class AlertStore:
    def __init__(self, path: Path):
        self._file = JsonFileStore(path)
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._file.path

    async def _read(self) -> list[PriceAlert]:
        raw = await self._file.load()
        rows = raw.get("alerts") if isinstance(raw, dict) else raw
        if not isinstance(rows, list):
            return []

        alerts = []
        for row in rows:
            try:
                alerts.append(PriceAlert.model_validate(row))
            except ValidationError as e:
                logger.warning(f"Skipping invalid stored alert: {_validation_message(e)}")
        return alerts

    async def _write(self, alerts: list[PriceAlert]) -> None:
        await self._file.save({"alerts": [a.model_dump(mode="json") for a in alerts]})

    async def list_alerts(self, symbol: Optional[str] = None) -> list[PriceAlert]:
        alerts = await self._read()
        if symbol:
            wanted = symbol.strip().upper()
            alerts = [a for a in alerts if a.symbol == wanted]
        return alerts

    async def create(self, payload: AlertCreate | dict[str, Any]) -> PriceAlert:
        try:
            data = AlertCreate.model_validate(payload)
            alert = PriceAlert(
                symbol=data.symbol,
                condition=data.condition,
                target_price=data.target_price,
            )
        except ValidationError as e:
            raise InvalidInputError(_validation_message(e)) from e

        async with self._lock:
            alerts = await self._read()
            alerts.append(alert)
            await self._write(alerts)

        logger.info(f"Created alert {alert.id} ({alert.symbol} {alert.condition} {alert.target_price})")
        return alert

    async def update(self, alert_id: str, changes: AlertUpdate | dict[str, Any]) -> PriceAlert:
        try:
            update = AlertUpdate.model_validate(changes)
        except ValidationError as e:
            raise InvalidInputError(_validation_message(e)) from e

        async with self._lock:
            alerts = await self._read()
            for index, alert in enumerate(alerts):
                if alert.id != alert_id:
                    continue
                try:
                    updated = PriceAlert.model_validate(
                        {**alert.model_dump(), **update.model_dump(exclude_none=True)}
                    )
                except ValidationError as e:
                    raise InvalidInputError(_validation_message(e)) from e
                alerts[index] = updated
                await self._write(alerts)
                return updated

        raise NotFoundError(f"Alert {alert_id} not found")

    async def delete(self, alert_id: str) -> None:
        async with self._lock:
            alerts = await self._read()
            remaining = [a for a in alerts if a.id != alert_id]
            if len(remaining) == len(alerts):
                raise NotFoundError(f"Alert {alert_id} not found")
            await self._write(remaining)

    async def remove_fired(self, fired: Iterable[PriceAlert]) -> int:
        """Remove fired alerts in a single write.

        A stored alert whose condition or target changed since it was evaluated
        is kept, as are ids that no longer exist.
        """
        rules = {a.id: (a.condition, a.target_price) for a in fired}
        if not rules:
            return 0
        async with self._lock:
            alerts = await self._read()
            remaining = [
                a for a in alerts if rules.get(a.id) != (a.condition, a.target_price)
            ]
            removed = len(alerts) - len(remaining)
            if removed:
                await self._write(remaining)
        return removed
