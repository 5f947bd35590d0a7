"""Scheduler service for the periodic embedding backfill."""

import threading
from datetime import datetime, timezone
from typing import Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from resume_matcher.embeddings.backfill import BackfillRunResult
from resume_matcher.logging import get_logger

logger = get_logger(__name__, component="scheduler")

BACKFILL_JOB_ID = "embedding-backfill"


class SchedulerService:
    """
    Runs the embedding backfill on a fixed interval.

    A BackgroundScheduler executes the job in a worker thread so the main
    thread stays free for signal handling. Overlapping runs are prevented
    both here (max_instances=1) and by the backfill's own lock.
    """

    def __init__(
        self,
        backfill_callable: Callable[[], BackfillRunResult],
        interval_seconds: int,
        shutdown_event: Optional[threading.Event] = None,
    ):
        """
        Args:
            backfill_callable: Called on each run (normally EmbeddingBackfill.run_once)
            interval_seconds: Interval between runs in seconds
            shutdown_event: Optional event set on shutdown for coordination
        """
        self.backfill_callable = backfill_callable
        self.interval_seconds = interval_seconds
        self.shutdown_event = shutdown_event
        self.last_result: Optional[BackfillRunResult] = None

        self.scheduler = BackgroundScheduler(
            job_defaults={
                "max_instances": 1,
                "coalesce": True,
                "misfire_grace_time": interval_seconds,
            },
            timezone=timezone.utc,
        )

    def start(self, run_immediately: bool = True) -> None:
        """Register the backfill job and start the scheduler thread."""
        trigger = IntervalTrigger(seconds=self.interval_seconds, timezone=timezone.utc)

        job_kwargs = {}
        if run_immediately:
            job_kwargs["next_run_time"] = datetime.now(timezone.utc)

        self.scheduler.add_job(
            func=self._run_job,
            trigger=trigger,
            id=BACKFILL_JOB_ID,
            name="Embedding backfill",
            replace_existing=True,
            **job_kwargs,
        )
        self.scheduler.start()

        next_run = self.get_next_run_time()
        logger.info(
            f"Scheduler started with interval: {self.interval_seconds} seconds",
            extra={
                "event": "scheduler.started",
                "interval_seconds": self.interval_seconds,
                "next_run_time": next_run.isoformat() if next_run else None,
            },
        )

    def _run_job(self) -> None:
        result = self.backfill_callable()
        self.last_result = result
        if result is not None and result.had_errors:
            logger.warning(
                "Scheduled backfill finished with errors",
                extra={
                    "event": "scheduler.run.errors",
                    "failed": result.failed,
                    "error_message": result.error_message,
                },
            )

    def shutdown(self, wait: bool = False) -> None:
        """
        Stop the scheduler.

        Args:
            wait: If True, wait for a running backfill to complete first
        """
        logger.info(
            "Shutting down scheduler",
            extra={"event": "scheduler.stopping", "wait_for_jobs": wait},
        )

        if self.scheduler.running:
            self.scheduler.shutdown(wait=wait)

        if self.shutdown_event:
            self.shutdown_event.set()

        logger.info("Scheduler shutdown complete", extra={"event": "scheduler.stopped"})

    def trigger_now(self) -> None:
        """Run the backfill synchronously in the calling thread."""
        logger.info("Triggering immediate backfill run", extra={"event": "scheduler.trigger_now"})
        self._run_job()

    def is_running(self) -> bool:
        return self.scheduler.running

    def get_next_run_time(self) -> Optional[datetime]:
        job = self.scheduler.get_job(BACKFILL_JOB_ID)
        return job.next_run_time if job else None
