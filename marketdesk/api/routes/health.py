"""Health check endpoint."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request

from marketdesk.api.dependencies import get_dashboard
from marketdesk.core.config import settings
from marketdesk.services.dashboard import MarketDashboard


router = APIRouter(prefix="/health")


@router.get("", summary="Health check")
async def health_check(
    request: Request,
    dashboard: MarketDashboard = Depends(get_dashboard),
) -> dict[str, Any]:
    """Report provider configuration and the alert schedule."""
    scheduler = getattr(request.app.state, "scheduler", None)
    next_run = scheduler.next_run_time() if scheduler and scheduler.running else None

    return {
        "status": "healthy",
        "version": settings.app_version,
        "providers": {
            provider.name: provider.is_configured()
            for provider in dashboard.gateway.providers
        },
        "alerts_scheduler": {
            "running": bool(scheduler and scheduler.running),
            "next_run_at": next_run.isoformat() if next_run else None,
        },
    }
