"""
APScheduler configuration and management.

Runs the periodic staleness sweep that fails jobs abandoned by a crashed
worker. The sweep is off unless STALE_JOB_SWEEP_ENABLED is set.
"""

import logging
from typing import Any, Awaitable, Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

logger = logging.getLogger(__name__)

SweepJob = Callable[[], Awaitable[Any]]

STALE_SWEEP_JOB_ID = "stale_job_sweep"


class SchedulerManager:
    """
    Manages APScheduler lifecycle and job registration.

    Example:
        >>> manager = SchedulerManager()
        >>> manager.initialize(sweeper.run, interval_seconds=300)
        >>> manager.start()
    """

    def __init__(self) -> None:
        self.scheduler: Optional[AsyncIOScheduler] = None
        self._sweep_job: Optional[SweepJob] = None

    def initialize(self, sweep_job: SweepJob, interval_seconds: int = 300) -> None:
        """
        Initialize and configure scheduler with the sweep job.

        Args:
            sweep_job: Coroutine function running one sweep
            interval_seconds: Seconds between sweeps
        """
        if self.scheduler is not None:
            logger.warning("Scheduler already initialized")
            return

        self._sweep_job = sweep_job
        self.scheduler = AsyncIOScheduler(
            timezone="UTC",
            job_defaults={
                "coalesce": True,
                "max_instances": 1,
                "misfire_grace_time": interval_seconds,
            },
        )
        self.scheduler.add_job(
            sweep_job,
            trigger=IntervalTrigger(seconds=interval_seconds, timezone="UTC"),
            id=STALE_SWEEP_JOB_ID,
            name="Stale job sweep",
            replace_existing=True,
        )
        logger.info(
            "Scheduler initialized",
            extra={"job_id": STALE_SWEEP_JOB_ID, "interval_seconds": interval_seconds},
        )

    def start(self) -> None:
        """Start scheduler (begin executing jobs)."""
        if self.scheduler is None:
            raise RuntimeError("Scheduler not initialized")

        if self.scheduler.running:
            logger.warning("Scheduler already running")
            return

        self.scheduler.start()
        logger.info("Scheduler started")

    def shutdown(self, wait: bool = True) -> None:
        """Shutdown scheduler; ``wait`` lets a running sweep complete."""
        if self.scheduler is None or not self.scheduler.running:
            logger.warning("Scheduler not running")
            return

        self.scheduler.shutdown(wait=wait)
        logger.info(f"Scheduler shutdown (wait={wait})")

    def get_jobs(self) -> list[dict[str, str]]:
        if self.scheduler is None:
            return []
        return [
            {
                "id": job.id,
                "name": job.name,
                "next_run": str(job.next_run_time),
                "trigger": str(job.trigger),
            }
            for job in self.scheduler.get_jobs()
        ]

    async def trigger_sweep_now(self) -> Any:
        """Run the sweep immediately, outside the schedule."""
        if self._sweep_job is None:
            raise RuntimeError("Sweep job not initialized")

        logger.info("Manually triggering stale job sweep")
        return await self._sweep_job()
