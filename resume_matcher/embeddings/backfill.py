"""Background embedding backfill.

Embeds active postings whose stored vector is missing or stale, in bounded
batches, so the request path rarely has to embed on the fly.
"""

import threading
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, ContextManager, List, Optional
from uuid import uuid4

from sqlalchemy.orm import Session

from resume_matcher.clients.exceptions import ServiceClientError
from resume_matcher.domain.models import JobPostingRecord
from resume_matcher.logging import get_logger
from resume_matcher.logging.context import log_context
from resume_matcher.matching.text import TextAssembler
from resume_matcher.persistence.database import get_session
from resume_matcher.persistence.exceptions import PersistenceError
from resume_matcher.persistence.repositories import JobPostingRepository
from resume_matcher.utils.timestamps import utc_now

from .store import EmbeddingStore

logger = get_logger(__name__, component="backfill")

SessionFactory = Callable[[], ContextManager[Session]]


@dataclass
class BackfillRunResult:
    """
    Outcome of one backfill run.

    Attributes:
        run_started_at: UTC timestamp when the run began
        run_finished_at: UTC timestamp when the run completed
        scanned: Active postings inspected
        pending: Postings whose vector was missing or stale
        embedded: Vectors computed and stored during this run
        failed: Postings whose embedding or storage failed
        duration_seconds: Wall-clock time of the run
        skipped: Whether the run was skipped (previous run still in progress)
        error_message: Set when the run could not read the job-posting store
    """

    run_started_at: datetime
    run_finished_at: datetime
    scanned: int = 0
    pending: int = 0
    embedded: int = 0
    failed: int = 0
    duration_seconds: float = 0.0
    skipped: bool = False
    error_message: Optional[str] = None

    def __post_init__(self):
        if self.duration_seconds == 0.0:
            delta = self.run_finished_at - self.run_started_at
            self.duration_seconds = delta.total_seconds()

    @property
    def had_errors(self) -> bool:
        return self.failed > 0 or self.error_message is not None


class EmbeddingBackfill:
    """Keeps stored posting vectors in step with postings and the model."""

    def __init__(
        self,
        store: EmbeddingStore,
        assembler: Optional[TextAssembler] = None,
        batch_size: int = 200,
        session_factory: SessionFactory = get_session,
    ):
        self.store = store
        self.assembler = assembler or TextAssembler()
        self.batch_size = batch_size
        self._session_factory = session_factory
        self._lock = threading.Lock()

    def run_once(self) -> BackfillRunResult:
        """
        Embed up to ``batch_size`` postings with missing or stale vectors.

        Overlapping calls return immediately with ``skipped=True``. Failures
        for individual postings are counted, not raised.

        Returns:
            BackfillRunResult with counters for this run
        """
        run_started_at = utc_now()
        run_id = uuid4().hex

        if not self._lock.acquire(blocking=False):
            with log_context(run_id=run_id):
                logger.warning(
                    "Backfill run skipped: previous run still in progress",
                    extra={"event": "backfill.run.skipped", "reason": "lock_held"},
                )
            return BackfillRunResult(
                run_started_at=run_started_at,
                run_finished_at=utc_now(),
                skipped=True,
            )

        try:
            with log_context(run_id=run_id):
                return self._run(run_started_at)
        finally:
            self._lock.release()

    def _run(self, run_started_at: datetime) -> BackfillRunResult:
        logger.info(
            "Backfill run started",
            extra={
                "event": "backfill.run.started",
                "batch_size": self.batch_size,
                "model_version": self.store.model_version,
            },
        )

        try:
            postings = self._list_postings()
            stored = self.store.get_embeddings(p.id for p in postings)
        except PersistenceError as e:
            logger.error(
                f"Backfill run aborted: {e}",
                extra={"event": "backfill.run.failed", "error_type": type(e).__name__},
            )
            return BackfillRunResult(
                run_started_at=run_started_at,
                run_finished_at=utc_now(),
                error_message=str(e),
            )

        pending: List[JobPostingRecord] = [
            posting
            for posting in postings
            if posting.id not in stored
            or stored[posting.id].is_stale_for(posting, self.store.model_version)
        ]
        batch = pending[: self.batch_size]

        embedded = 0
        failed = 0
        for posting in batch:
            start = time.time()
            try:
                self.store.recompute_embedding(posting.id, self.assembler.assemble(posting))
                embedded += 1
            except (ServiceClientError, PersistenceError, ValueError) as e:
                failed += 1
                logger.warning(
                    f"Failed to embed job posting {posting.id}: {e}",
                    extra={
                        "event": "backfill.posting.failed",
                        "job_posting_id": posting.id,
                        "error_type": type(e).__name__,
                        "duration_ms": int((time.time() - start) * 1000),
                    },
                )

        result = BackfillRunResult(
            run_started_at=run_started_at,
            run_finished_at=utc_now(),
            scanned=len(postings),
            pending=len(pending),
            embedded=embedded,
            failed=failed,
        )

        logger.info(
            "Backfill run completed",
            extra={
                "event": "backfill.run.completed",
                "duration_ms": int(result.duration_seconds * 1000),
                "scanned": result.scanned,
                "pending": result.pending,
                "embedded": result.embedded,
                "failed": result.failed,
                "remaining": max(0, result.pending - len(batch)),
            },
        )
        return result

    def _list_postings(self) -> List[JobPostingRecord]:
        with self._session_factory() as session:
            return JobPostingRepository(session).list_active()
