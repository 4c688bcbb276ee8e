"""API route modules."""

from . import alerts, edgar, health, market


__all__ = ["alerts", "edgar", "health", "market"]
