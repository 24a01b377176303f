"""
APScheduler-based periodic execution of reconciliation runs.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED, EVENT_JOB_MISSED
from apscheduler.executors.asyncio import AsyncIOExecutor
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from agents.sync_agent import AnnouncementSyncAgent
from models.sync import SyncRunResult

# Setup logging
logger = logging.getLogger(__name__)

SYNC_JOB_ID = "announcement_sync"


class SyncScheduler:
    """Run the sync agent on a fixed interval, never two runs at once."""

    def __init__(self, agent: AnnouncementSyncAgent, interval_seconds: int, dry_run: bool = False):
        self.agent = agent
        self.interval_seconds = interval_seconds
        self.dry_run = dry_run
        self.scheduler: Optional[AsyncIOScheduler] = None
        self.is_running = False
        self.jobs_executed = 0
        self.jobs_failed = 0
        self.last_result: Optional[SyncRunResult] = None

    def initialize(self) -> None:
        """Initialize the scheduler with job store and executors."""
        if self.scheduler:
            logger.warning("Scheduler already initialized")
            return

        job_defaults = {
            'coalesce': True,  # Combine multiple pending executions into one
            'max_instances': 1,  # A run never overlaps the previous one
        }

        self.scheduler = AsyncIOScheduler(
            jobstores={'default': MemoryJobStore()},
            executors={'default': AsyncIOExecutor()},
            job_defaults=job_defaults,
            timezone='UTC'
        )

        self.scheduler.add_listener(self._job_executed_listener, EVENT_JOB_EXECUTED)
        self.scheduler.add_listener(self._job_error_listener, EVENT_JOB_ERROR)
        self.scheduler.add_listener(self._job_missed_listener, EVENT_JOB_MISSED)

        self.scheduler.add_job(
            func=self.execute_run,
            trigger='interval',
            seconds=self.interval_seconds,
            id=SYNC_JOB_ID,
            name="Announce new videos",
            next_run_time=datetime.now(timezone.utc),
            replace_existing=True
        )
        logger.info(f"Scheduler initialized, sync every {self.interval_seconds}s")

    def start(self) -> None:
        """Start the scheduler. Must be called from within a running event loop."""
        if not self.scheduler:
            self.initialize()

        if self.is_running:
            logger.warning("Scheduler already running")
            return

        self.scheduler.start()
        self.is_running = True
        logger.info("Scheduler started")

    def stop(self) -> None:
        """Stop the scheduler."""
        if not self.is_running:
            logger.warning("Scheduler not running")
            return

        self.scheduler.shutdown(wait=False)
        self.is_running = False
        logger.info("Scheduler stopped")

    async def execute_run(self) -> SyncRunResult:
        """Job body: one reconciliation run."""
        result = await self.agent.run(dry_run=self.dry_run)
        self.last_result = result
        if not result.success:
            raise RuntimeError(f"Sync run failed: {'; '.join(result.errors[:3])}")
        return result

    def _job_executed_listener(self, event) -> None:
        """Handle job execution events."""
        self.jobs_executed += 1
        logger.debug(f"Job executed: {event.job_id}")

    def _job_error_listener(self, event) -> None:
        """Handle job error events."""
        self.jobs_executed += 1
        self.jobs_failed += 1
        logger.error(f"Job failed: {event.job_id} - {event.exception}")

    def _job_missed_listener(self, event) -> None:
        """Handle missed job events."""
        logger.warning(f"Job missed: {event.job_id}")

    def get_stats(self) -> Dict[str, Any]:
        """Get scheduler statistics."""
        next_run = None
        if self.scheduler:
            job = self.scheduler.get_job(SYNC_JOB_ID)
            next_run = job.next_run_time if job else None

        return {
            "is_running": self.is_running,
            "interval_seconds": self.interval_seconds,
            "next_run_time": next_run,
            "jobs_executed": self.jobs_executed,
            "jobs_failed": self.jobs_failed
        }
