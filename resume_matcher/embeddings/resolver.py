"""Resolves one vector per candidate, embedding on the fly where needed."""

from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional, Tuple

from resume_matcher.clients.exceptions import ServiceClientError
from resume_matcher.logging import get_logger
from resume_matcher.logging.context import get_log_context, log_context
from resume_matcher.matching.models import MatchCandidate

from .store import EmbeddingStore

logger = get_logger(__name__, component="embeddings")


class VectorResolver:
    """Maps candidates to vectors for similarity ranking.

    Fresh stored vectors are used as-is. Missing or stale ones (other model
    version, or older than the posting's last edit) are computed with the
    embedding provider, at most ``max_concurrency`` calls at a time. A
    candidate whose embedding fails is left out of the result.
    """

    def __init__(self, store: EmbeddingStore, max_concurrency: int = 4):
        self.store = store
        self.max_concurrency = max(1, max_concurrency)

    def resolve(self, candidates: List[MatchCandidate]) -> Dict[int, List[float]]:
        """Return ``{job_posting_id: vector}`` for every resolvable candidate.

        Raises:
            PersistenceError: If stored vectors cannot be read
        """
        stored = self.store.get_embeddings(c.job_posting_id for c in candidates)

        vectors: Dict[int, List[float]] = {}
        pending: List[MatchCandidate] = []

        for candidate in candidates:
            embedding = stored.get(candidate.job_posting_id)
            if embedding is not None and not embedding.is_stale_for(
                candidate.job, self.store.model_version
            ):
                vectors[candidate.job_posting_id] = embedding.vector
            else:
                pending.append(candidate)

        failed = 0
        if pending:
            for job_posting_id, vector in self._embed_pending(pending):
                if vector is None:
                    failed += 1
                else:
                    vectors[job_posting_id] = vector

        logger.info(
            f"Resolved {len(vectors)} of {len(candidates)} posting vectors",
            extra={
                "event": "embeddings.resolved",
                "stored": len(candidates) - len(pending),
                "computed": len(pending) - failed,
                "failed": failed,
            },
        )
        return vectors

    def _embed_pending(
        self, pending: List[MatchCandidate]
    ) -> List[Tuple[int, Optional[List[float]]]]:
        context = get_log_context()

        def embed(candidate: MatchCandidate) -> Tuple[int, Optional[List[float]]]:
            # Worker threads do not inherit the caller's context variables
            with log_context(**context):
                try:
                    return candidate.job_posting_id, self.store.embed_text(candidate.assembled_text)
                except ServiceClientError as e:
                    logger.warning(
                        f"Skipping job posting {candidate.job_posting_id}: embedding failed: {e}",
                        extra={
                            "event": "embeddings.on_the_fly.failed",
                            "job_posting_id": candidate.job_posting_id,
                            "error_type": type(e).__name__,
                        },
                    )
                    return candidate.job_posting_id, None

        workers = min(self.max_concurrency, len(pending))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="embed") as executor:
            return list(executor.map(embed, pending))
