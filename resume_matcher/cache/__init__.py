"""Result caching for match responses."""

from .result_cache import CacheEntry, ResultCache

__all__ = ["ResultCache", "CacheEntry"]
