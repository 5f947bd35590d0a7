"""Cosine similarity ranking with data-quality penalties.

Postings with little usable text have their similarity damped before
ranking. Only the first matching penalty tier applies.
"""

import math
from typing import Dict, List, Optional, Sequence

import numpy as np

from resume_matcher.config.models import QualityPenaltyConfig
from resume_matcher.logging import get_logger

from .models import MatchCandidate

logger = get_logger(__name__, component="ranking")

EPSILON = 1e-9


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two vectors, bounded to [-1, 1].

    Returns 0.0 for empty, zero-norm, or differently sized vectors and for
    any computation that does not produce a finite number.

    Example:
        >>> cosine_similarity([1.0, 0.0], [1.0, 0.0])
        1.0
        >>> cosine_similarity([0.0, 0.0], [1.0, 2.0])
        0.0
    """
    vec_a = np.asarray(a, dtype=float)
    vec_b = np.asarray(b, dtype=float)

    if vec_a.size == 0 or vec_a.shape != vec_b.shape:
        return 0.0

    norm_a = float(np.linalg.norm(vec_a))
    norm_b = float(np.linalg.norm(vec_b))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0

    score = float(np.dot(vec_a, vec_b)) / (norm_a * norm_b + EPSILON)
    if not math.isfinite(score):
        return 0.0

    # Snap rounding noise so identical vectors score exactly 1.0
    if math.isclose(score, 1.0, abs_tol=1e-6):
        return 1.0
    return max(-1.0, min(1.0, score))


def quality_penalty_factor(
    text_length: int, has_valid_description: bool, config: QualityPenaltyConfig
) -> float:
    """Multiplier for the data-quality penalty (1.0 when no tier fires).

    Tiers, first match wins:
        1. no valid description and text shorter than ``no_description_max_length``
        2. text shorter than ``short_text_max_length``
    """
    if not has_valid_description and text_length < config.no_description_max_length:
        return config.no_description_factor
    if text_length < config.short_text_max_length:
        return config.short_text_factor
    return 1.0


def score_to_percent(ratio: float) -> int:
    """Convert a 0-1 ratio to an integer percentage, rounding half up."""
    return int(math.floor(ratio * 100 + 0.5))


class SimilarityRanker:
    """Scores candidates against the resume vector and keeps the top K."""

    def __init__(self, quality: Optional[QualityPenaltyConfig] = None, top_k: int = 50):
        self.quality = quality or QualityPenaltyConfig()
        self.top_k = top_k

    def rank(
        self,
        resume_vector: Sequence[float],
        candidates: List[MatchCandidate],
        vectors: Dict[int, List[float]],
    ) -> List[MatchCandidate]:
        """Score, penalise, sort, and truncate.

        Candidates without an entry in ``vectors`` are dropped. Sorting is
        stable, so ties keep the incoming order.

        Each kept candidate leaves with cosine-only scores filled in
        (``final_score_ratio`` and ``match_score_percent``), ready to be used
        directly when reranking is skipped.
        """
        scored: List[MatchCandidate] = []
        skipped = 0

        for candidate in candidates:
            vector = vectors.get(candidate.job_posting_id)
            if vector is None:
                skipped += 1
                continue

            raw = cosine_similarity(resume_vector, vector)
            factor = quality_penalty_factor(
                candidate.text_length, candidate.has_valid_description, self.quality
            )
            adjusted = raw * factor

            candidate.raw_cosine_similarity = raw
            candidate.penalty_factor = factor
            candidate.adjusted_cosine_similarity = adjusted
            candidate.final_score_ratio = adjusted
            candidate.match_score_percent = score_to_percent(adjusted)
            scored.append(candidate)

        scored.sort(key=lambda c: c.adjusted_cosine_similarity, reverse=True)
        shortlist = scored[: self.top_k]

        logger.info(
            f"Similarity ranking kept {len(shortlist)} of {len(scored)} candidates",
            extra={
                "event": "ranking.similarity.completed",
                "scored": len(scored),
                "skipped": skipped,
                "kept": len(shortlist),
                "penalised": sum(1 for c in scored if c.penalty_factor < 1.0),
            },
        )
        return shortlist
