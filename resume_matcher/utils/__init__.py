"""Utility functions for hashing and UTC time handling."""

from .hashing import compute_cache_key, fingerprint_text, hash_string
from .timestamps import ensure_utc, format_timestamp, parse_timestamp, utc_now

__all__ = [
    # Hashing
    "hash_string",
    "fingerprint_text",
    "compute_cache_key",
    # Timestamps
    "utc_now",
    "ensure_utc",
    "format_timestamp",
    "parse_timestamp",
]
