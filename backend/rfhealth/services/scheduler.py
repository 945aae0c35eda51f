"""Scheduler service - periodic housekeeping.

The only periodic job is the rate-limiter sweep, which evicts callers with
no requests inside the current window. It is not coupled to request
handling.
"""
import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


class SchedulerService:
    """Runs the rate-limiter sweep on a fixed interval."""

    def __init__(self, rate_limiter: RateLimiter, sweep_interval_seconds: int = 300):
        self.rate_limiter = rate_limiter
        self.sweep_interval_seconds = sweep_interval_seconds
        self.scheduler: Optional[AsyncIOScheduler] = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def start(self):
        """Start the scheduler."""
        if self._running:
            return

        self.scheduler = AsyncIOScheduler()
        self.scheduler.add_job(
            self._sweep_rate_limiter,
            trigger=IntervalTrigger(seconds=self.sweep_interval_seconds),
            id="sweep_rate_limiter",
            replace_existing=True,
            max_instances=1,
        )
        self.scheduler.start()
        self._running = True
        logger.info(f"Scheduler started (rate limiter sweep every {self.sweep_interval_seconds}s)")

    def stop(self):
        """Stop the scheduler."""
        if self.scheduler and self._running:
            self.scheduler.shutdown(wait=False)
            self._running = False
            logger.info("Scheduler stopped")

    async def _sweep_rate_limiter(self):
        try:
            removed = self.rate_limiter.sweep()
            if removed:
                logger.info(f"Rate limiter sweep evicted {removed} idle callers")
        except Exception as e:
            logger.error(f"Error sweeping rate limiter: {e}")
