"""Background jobs."""

from .scheduler import AlertScheduler


__all__ = ["AlertScheduler"]
