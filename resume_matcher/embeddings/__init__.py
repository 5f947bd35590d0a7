"""Job-posting embeddings: storage, on-the-fly resolution and backfill."""

from .backfill import BackfillRunResult, EmbeddingBackfill
from .resolver import VectorResolver
from .store import EmbeddingStore

__all__ = [
    "EmbeddingStore",
    "VectorResolver",
    "EmbeddingBackfill",
    "BackfillRunResult",
]
