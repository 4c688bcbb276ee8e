"""Price alert CRUD routes."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends

from marketdesk.api.dependencies import get_dashboard
from marketdesk.domain import AlertCreate, AlertUpdate, Envelope, PriceAlert
from marketdesk.services.dashboard import MarketDashboard


router = APIRouter()


@router.get("", response_model=Envelope[list[PriceAlert]])
async def list_alerts(
    symbol: Optional[str] = None,
    dashboard: MarketDashboard = Depends(get_dashboard),
) -> Envelope[list[PriceAlert]]:
    return await dashboard.list_alerts(symbol)


@router.post("", response_model=Envelope[PriceAlert])
async def create_alert(
    payload: AlertCreate,
    dashboard: MarketDashboard = Depends(get_dashboard),
) -> Envelope[PriceAlert]:
    return await dashboard.create_alert(payload)


@router.patch("/{alert_id}", response_model=Envelope[PriceAlert])
async def update_alert(
    alert_id: str,
    changes: AlertUpdate,
    dashboard: MarketDashboard = Depends(get_dashboard),
) -> Envelope[PriceAlert]:
    return await dashboard.update_alert(alert_id, changes)


@router.delete("/{alert_id}", response_model=Envelope[dict[str, str]])
async def delete_alert(
    alert_id: str,
    dashboard: MarketDashboard = Depends(get_dashboard),
) -> Envelope[dict[str, str]]:
    return await dashboard.delete_alert(alert_id)
