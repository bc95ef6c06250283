"""Job scheduling for periodic health checks."""

from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger


logger = structlog.get_logger(__name__)


class JobScheduler:
    """Manages scheduled monitor ticks using APScheduler.

    Every job runs with ``max_instances=1`` and ``coalesce=True`` so a slow
    tick (the failure path waits before alerting) never overlaps the next one.
    """

    def __init__(self, timezone_name: str = "UTC"):
        self.scheduler = AsyncIOScheduler(timezone=timezone_name)
        self.jobs: Dict[str, Dict[str, Any]] = {}
        self.running = False

    async def start(self):
        """Start the job scheduler."""
        if self.running:
            logger.warning("Scheduler already running")
            return

        self.scheduler.start()
        self.running = True
        logger.info("Job scheduler started")

    async def stop(self):
        """Stop the job scheduler."""
        if not self.running:
            return

        self.scheduler.shutdown(wait=False)
        self.running = False
        logger.info("Job scheduler stopped")

    def _add_job(
        self,
        job_id: str,
        func: Callable,
        trigger: Any,
        job_type: str,
        args: Optional[tuple],
        kwargs: Optional[Dict[str, Any]],
        description: Optional[str],
        **info: Any,
    ):
        if job_id in self.jobs:
            logger.warning("Job already exists, replacing", job_id=job_id)
            self.remove_job(job_id)

        job = self.scheduler.add_job(
            func=func,
            trigger=trigger,
            id=job_id,
            args=args or (),
            kwargs=kwargs or {},
            name=description or job_id,
            max_instances=1,
            coalesce=True,
        )

        self.jobs[job_id] = {
            "job": job,
            "type": job_type,
            "description": description,
            "added_at": datetime.now(timezone.utc),
            **info,
        }
        return job

    def add_cron_job(
        self,
        job_id: str,
        func: Callable,
        cron_expression: str,
        args: Optional[tuple] = None,
        kwargs: Optional[Dict[str, Any]] = None,
        description: Optional[str] = None,
    ):
        """Add a cron-scheduled job."""
        # Format: "minute hour day month day_of_week"
        cron_parts = cron_expression.split()
        if len(cron_parts) != 5:
            raise ValueError(f"Invalid cron expression: {cron_expression}")

        trigger = CronTrigger(
            minute=cron_parts[0],
            hour=cron_parts[1],
            day=cron_parts[2],
            month=cron_parts[3],
            day_of_week=cron_parts[4],
        )

        self._add_job(job_id, func, trigger, "cron", args, kwargs, description, expression=cron_expression)
        logger.info("Added cron job", job_id=job_id, cron=cron_expression, description=description)

    def add_interval_job(
        self,
        job_id: str,
        func: Callable,
        seconds: int,
        args: Optional[tuple] = None,
        kwargs: Optional[Dict[str, Any]] = None,
        description: Optional[str] = None,
    ):
        """Add an interval-based job."""
        trigger = IntervalTrigger(seconds=seconds)

        self._add_job(job_id, func, trigger, "interval", args, kwargs, description, seconds=seconds)
        logger.info("Added interval job", job_id=job_id, interval_seconds=seconds, description=description)

    def remove_job(self, job_id: str) -> bool:
        """Remove a scheduled job."""
        if job_id not in self.jobs:
            logger.warning("Job not found", job_id=job_id)
            return False

        try:
            self.scheduler.remove_job(job_id)
        except Exception as e:
            logger.error("Failed to remove job", job_id=job_id, error=str(e))
            return False

        del self.jobs[job_id]
        logger.info("Removed job", job_id=job_id)
        return True

    def get_job_status(self, job_id: str) -> Optional[Dict[str, Any]]:
        """Get status information for a job."""
        if job_id not in self.jobs:
            return None

        job_info = self.jobs[job_id]
        scheduler_job = self.scheduler.get_job(job_id)
        if scheduler_job is None:
            return None

        # Jobs added before start() have no next_run_time attribute yet
        next_run = getattr(scheduler_job, "next_run_time", None)
        return {
            "job_id": job_id,
            "name": scheduler_job.name,
            "type": job_info["type"],
            "next_run": next_run.isoformat() if next_run else None,
            "added_at": job_info["added_at"].isoformat(),
            "description": job_info.get("description"),
        }

    def list_jobs(self) -> List[Dict[str, Any]]:
        """List all scheduled jobs."""
        job_statuses = []
        for job_id in self.jobs:
            status = self.get_job_status(job_id)
            if status:
                job_statuses.append(status)

        return job_statuses

    def get_scheduler_status(self) -> Dict[str, Any]:
        """Get overall scheduler status."""
        next_run = min(
            (
                job.next_run_time
                for job in self.scheduler.get_jobs()
                if getattr(job, "next_run_time", None)
            ),
            default=None,
        )
        return {
            "running": self.running,
            "job_count": len(self.jobs),
            "next_run": next_run.isoformat() if next_run else None,
        }
