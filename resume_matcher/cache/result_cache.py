"""In-process TTL cache for match responses.

Entries are keyed by (resume fingerprint, normalised filters, model
version). There is no per-key locking: two concurrent identical requests
may both miss and both compute, and the last write wins.
"""

import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from resume_matcher.domain.models import MatchResponse
from resume_matcher.logging import get_logger

logger = get_logger(__name__, component="cache")


@dataclass
class CacheEntry:
    """A stored response and the clock reading at which it was stored."""

    cache_key: str
    stored_at: float
    payload: MatchResponse


class ResultCache:
    """TTL cache with an opportunistic sweep.

    An entry is fresh while ``now - stored_at < ttl_seconds``. Whenever a
    write leaves more than ``sweep_threshold`` entries, every expired entry
    is removed. Payloads are deep-copied on the way in and out so callers
    can never mutate a cached response.
    """

    def __init__(
        self,
        ttl_seconds: float = 3600,
        sweep_threshold: int = 100,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.sweep_threshold = sweep_threshold
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, cache_key: str) -> Optional[MatchResponse]:
        """Return a copy of the fresh payload for ``cache_key``, or None."""
        entry = self._entries.get(cache_key)
        if entry is None:
            return None

        if not self._is_fresh(entry, self._clock()):
            logger.debug(
                "Cache entry expired",
                extra={"event": "cache.expired", "cache_key": cache_key[:12]},
            )
            return None

        return entry.payload.model_copy(deep=True)

    def set(self, cache_key: str, payload: MatchResponse) -> None:
        """Insert or overwrite the entry for ``cache_key``."""
        self._entries[cache_key] = CacheEntry(
            cache_key=cache_key,
            stored_at=self._clock(),
            payload=payload.model_copy(deep=True),
        )

        if len(self._entries) > self.sweep_threshold:
            self.sweep()

    def sweep(self) -> int:
        """Remove every expired entry.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        removed = 0

        for key, entry in list(self._entries.items()):
            if not self._is_fresh(entry, now):
                # Another thread may have swept or overwritten it already
                if self._entries.get(key) is entry:
                    self._entries.pop(key, None)
                    removed += 1

        logger.debug(
            f"Cache sweep removed {removed} entries",
            extra={"event": "cache.swept", "removed": removed, "remaining": len(self._entries)},
        )
        return removed

    def clear(self) -> None:
        self._entries.clear()

    def _is_fresh(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.stored_at < self.ttl_seconds
