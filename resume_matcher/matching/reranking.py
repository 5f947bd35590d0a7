"""Optional cross-encoder reranking stage and the final threshold.

The reranker refines the cosine shortlist when the service is healthy.
Every failure path (disabled, unhealthy, timeout, malformed or mismatched
answer) degrades to the cosine ranking; a request never fails because of
this stage.
"""

import math
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from resume_matcher.clients.exceptions import ServiceClientError
from resume_matcher.clients.reranker import RerankerClient
from resume_matcher.logging import get_logger

from .models import MatchCandidate
from .similarity import score_to_percent

logger = get_logger(__name__, component="ranking")


@dataclass
class RerankOutcome:
    """Result of the rerank stage.

    Attributes:
        candidates: Final ordered top-N candidates
        reranked: True when the reranker produced the order
        fallback_reason: Why the cosine ranking was used instead (None when reranked)
    """

    candidates: List[MatchCandidate] = field(default_factory=list)
    reranked: bool = False
    fallback_reason: Optional[str] = None


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class Reranker:
    """Reorders the cosine shortlist with the reranking service."""

    def __init__(
        self,
        client: Optional[RerankerClient],
        top_n: int = 10,
        enabled: bool = True,
    ):
        self.client = client
        self.top_n = top_n
        self.enabled = enabled

    def rerank(self, resume_text: str, candidates: List[MatchCandidate]) -> RerankOutcome:
        """Rerank ``candidates`` (already cosine-ranked) and keep the top N."""
        if not candidates:
            return RerankOutcome(candidates=[], reranked=False, fallback_reason="no_candidates")

        if not self.enabled or self.client is None:
            return self._fallback(candidates, "disabled")

        if not resume_text or not resume_text.strip():
            return self._fallback(candidates, "missing_resume_text")

        if not self.client.check_health():
            return self._fallback(candidates, "unhealthy")

        try:
            matches = self.client.match_cv(resume_text, [c.assembled_text for c in candidates])
        except ServiceClientError as e:
            logger.warning(
                f"Reranking failed, using similarity ranking: {e}",
                extra={
                    "event": "ranking.rerank.failed",
                    "error_type": type(e).__name__,
                    "candidates": len(candidates),
                },
            )
            return self._fallback(candidates, type(e).__name__)

        for match in matches:
            candidate = candidates[match.jd_index]
            factor = candidate.penalty_factor

            candidate.raw_rerank_score = match.match_score
            candidate.raw_rerank_ratio = match.score_ratio
            candidate.adjusted_rerank_score = match.match_score * factor
            candidate.final_score_ratio = match.score_ratio * factor
            candidate.match_score_percent = _round_half_up(candidate.adjusted_rerank_score)

        ordered = sorted(candidates, key=lambda c: c.final_score_ratio, reverse=True)
        final = ordered[: self.top_n]

        logger.info(
            f"Reranked {len(candidates)} candidates, kept {len(final)}",
            extra={
                "event": "ranking.rerank.completed",
                "candidates": len(candidates),
                "kept": len(final),
            },
        )
        return RerankOutcome(candidates=final, reranked=True)

    def _fallback(self, candidates: List[MatchCandidate], reason: str) -> RerankOutcome:
        """Keep the cosine order and scores, dropping any rerank-derived values."""
        for candidate in candidates:
            candidate.raw_rerank_score = None
            candidate.raw_rerank_ratio = None
            candidate.adjusted_rerank_score = None
            candidate.final_score_ratio = candidate.adjusted_cosine_similarity
            candidate.match_score_percent = score_to_percent(candidate.adjusted_cosine_similarity)

        final = candidates[: self.top_n]
        logger.info(
            f"Reranker skipped ({reason}); using similarity ranking",
            extra={
                "event": "ranking.rerank.fallback",
                "reason": reason,
                "candidates": len(candidates),
                "kept": len(final),
            },
        )
        return RerankOutcome(candidates=final, reranked=False, fallback_reason=reason)


def apply_threshold(
    candidates: List[MatchCandidate], min_match_percent: int = 50
) -> Tuple[List[MatchCandidate], int]:
    """Drop candidates scoring at or below ``min_match_percent``.

    The survivors are re-sorted (stably) by match percentage so the public
    list never shows a higher percentage below a lower one, even when the
    reranker's percentages and ratios disagree.

    Returns:
        Tuple of (kept candidates, number dropped)
    """
    kept = [c for c in candidates if c.match_score_percent > min_match_percent]
    kept.sort(key=lambda c: c.match_score_percent, reverse=True)
    dropped = len(candidates) - len(kept)

    logger.debug(
        f"Threshold kept {len(kept)} of {len(candidates)} candidates",
        extra={
            "event": "ranking.threshold.completed",
            "min_match_percent": min_match_percent,
            "kept": len(kept),
            "dropped": dropped,
        },
    )
    return kept, dropped
