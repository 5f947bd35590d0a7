"""Hashing utilities for resume fingerprints and result-cache keys.

- fingerprint_text: stable identity of a resume's text content
- compute_cache_key: identity of a (fingerprint, filters, model version) request
"""

import hashlib
import json
import re
from typing import Any, Mapping


def hash_string(value: str) -> str:
    """SHA256 hex digest (64 characters) of a UTF-8 string."""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def fingerprint_text(text: str) -> str:
    """Compute a content fingerprint for a piece of text.

    Whitespace is collapsed first, so re-extracting the same resume with
    different line wrapping produces the same fingerprint. Letter case is
    preserved.

    Example:
        >>> fingerprint_text("Python  Developer\\n") == fingerprint_text("Python Developer")
        True
    """
    return hash_string(_normalize_text(text))


def compute_cache_key(
    resume_fingerprint: str, filters: Mapping[str, Any], model_version: str
) -> str:
    """Build the result-cache key for one matching request.

    Filters are serialised with sorted keys and without absent fields, so two
    requests that differ only in dict ordering or explicit ``None`` values share
    a key.

    Args:
        resume_fingerprint: Fingerprint of the resume text
        filters: Normalised filter mapping
        model_version: Embedding model version the scores were computed with

    Returns:
        SHA256 hex digest identifying the request
    """
    present = {key: value for key, value in filters.items() if value is not None}
    filter_blob = json.dumps(present, sort_keys=True, separators=(",", ":"), default=str)
    composite = f"{resume_fingerprint}|{model_version}|{filter_blob}"
    return hash_string(composite)


def _normalize_text(text: str) -> str:
    """Trim and collapse runs of whitespace to a single space."""
    return re.sub(r"\s+", " ", text.strip())
