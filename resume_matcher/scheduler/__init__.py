"""Periodic execution of the embedding backfill."""

from .service import BACKFILL_JOB_ID, SchedulerService

__all__ = [
    "BACKFILL_JOB_ID",
    "SchedulerService",
]
