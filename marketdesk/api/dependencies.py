"""API dependencies."""

from __future__ import annotations

from marketdesk.services.dashboard import MarketDashboard, get_dashboard as _get_dashboard


def get_dashboard() -> MarketDashboard:
    """Dashboard facade for route handlers (overridden in tests)."""
    return _get_dashboard()
