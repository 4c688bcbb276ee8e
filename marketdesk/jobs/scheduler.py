"""Alert evaluation schedule using APScheduler with async support."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from marketdesk.core.logging import get_logger
from marketdesk.services.alerts import AlertEvaluator

logger = get_logger("jobs.scheduler")

ALERT_JOB_ID = "price_alerts"


class AlertScheduler:
    """Runs AlertEvaluator.run_cycle on a fixed interval for the process lifetime."""

    def __init__(self, evaluator: AlertEvaluator, interval_seconds: int = 60):
        self.evaluator = evaluator
        self.interval_seconds = interval_seconds
        self._scheduler = AsyncIOScheduler(
            timezone="UTC",
            job_defaults={
                "coalesce": True,  # Combine missed runs into one
                "max_instances": 1,  # Only one cycle at a time
            },
        )
        self._running = False
        self.last_run_at: Optional[datetime] = None

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        if self._running:
            logger.warning("Scheduler already running")
            return

        self._scheduler.add_job(
            self.run_once,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            id=ALERT_JOB_ID,
            name="Price alert evaluation",
            replace_existing=True,
        )
        self._scheduler.start()
        self._running = True
        logger.info(f"Alert scheduler started (every {self.interval_seconds}s)")

    async def stop(self) -> None:
        if not self._running:
            return
        self._scheduler.shutdown(wait=False)
        self._running = False
        logger.info("Alert scheduler stopped")

    async def run_once(self) -> None:
        """One evaluation cycle; failures are logged and never stop the schedule."""
        self.last_run_at = datetime.now(timezone.utc)
        try:
            report = await self.evaluator.run_cycle()
        except Exception:
            logger.exception("Alert evaluation cycle failed")
            return
        logger.debug(f"Alert cycle report: {report.to_dict()}")

    def next_run_time(self) -> Optional[datetime]:
        job = self._scheduler.get_job(ALERT_JOB_ID)
        return job.next_run_time if job else None
