"""Embedding store: persisted posting vectors plus the embedding provider.

The store is the single place that knows both where vectors live and how
to compute new ones. Reads return whatever is persisted; callers decide
what counts as stale.
"""

from typing import Callable, ContextManager, Dict, Iterable, List

from sqlalchemy.orm import Session

from resume_matcher.clients.embedding import EmbeddingClient
from resume_matcher.domain.models import JobPostingEmbedding
from resume_matcher.logging import get_logger
from resume_matcher.persistence.database import get_session
from resume_matcher.persistence.repositories import EmbeddingRepository
from resume_matcher.utils.timestamps import utc_now

logger = get_logger(__name__, component="embeddings")

SessionFactory = Callable[[], ContextManager[Session]]


class EmbeddingStore:
    """Batch access to stored job-posting vectors and on-demand embedding."""

    def __init__(
        self,
        client: EmbeddingClient,
        model_version: str,
        session_factory: SessionFactory = get_session,
    ):
        self.client = client
        self.model_version = model_version
        self._session_factory = session_factory

    def get_embeddings(self, job_posting_ids: Iterable[int]) -> Dict[int, JobPostingEmbedding]:
        """Stored embeddings for the given ids; missing ids are absent.

        Raises:
            PersistenceError: If the store cannot be read
        """
        with self._session_factory() as session:
            return EmbeddingRepository(session).get_embeddings(job_posting_ids)

    def embed_text(self, text: str) -> List[float]:
        """Compute a vector with the embedding provider.

        Raises:
            ServiceClientError: On timeout, non-2xx status, or malformed payload
        """
        return self.client.embed_text(text)

    def recompute_embedding(self, job_posting_id: int, assembled_text: str) -> JobPostingEmbedding:
        """Embed ``assembled_text`` and persist it for ``job_posting_id``.

        Raises:
            ValueError: If the text is blank
            ServiceClientError: If the embedding provider fails
            PersistenceError: If the vector cannot be stored
        """
        if not assembled_text or not assembled_text.strip():
            raise ValueError(f"Cannot embed blank text for job posting {job_posting_id}")

        vector = self.client.embed_text(assembled_text)
        embedding = JobPostingEmbedding(
            job_posting_id=job_posting_id,
            vector=vector,
            model_version=self.model_version,
            updated_at=utc_now(),
        )

        with self._session_factory() as session:
            stored = EmbeddingRepository(session).upsert(embedding)

        logger.info(
            f"Stored embedding for job posting {job_posting_id}",
            extra={
                "event": "embedding.stored",
                "job_posting_id": job_posting_id,
                "model_version": self.model_version,
                "dimensions": len(vector),
            },
        )
        return stored

    def delete_embedding(self, job_posting_id: int) -> bool:
        """Remove the stored vector of a deleted posting.

        Returns:
            True if a vector was removed
        """
        with self._session_factory() as session:
            removed = EmbeddingRepository(session).delete(job_posting_id)

        logger.info(
            f"Deleted embedding for job posting {job_posting_id}",
            extra={
                "event": "embedding.deleted",
                "job_posting_id": job_posting_id,
                "removed": removed,
            },
        )
        return removed
