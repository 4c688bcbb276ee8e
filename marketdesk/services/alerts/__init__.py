"""Price alerts: storage, trigger rules, delivery and the evaluation cycle.

Usage:
    from marketdesk.services.alerts import AlertEvaluator

    report = await evaluator.run_cycle()
"""

from .checker import AlertCycleReport, AlertEvaluator
from .sender import AppriseNotifier, LogNotifier, Notifier, build_notifier
from .store import AlertStore
from .triggers import build_alert_message, is_triggered


__all__ = [
    "AlertCycleReport",
    "AlertEvaluator",
    "AlertStore",
    "AppriseNotifier",
    "LogNotifier",
    "Notifier",
    "build_alert_message",
    "build_notifier",
    "is_triggered",
]
