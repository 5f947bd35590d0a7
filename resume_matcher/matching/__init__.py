"""Matching stages: text assembly, rule filter, similarity, reranking.

Public API:
    - TextAssembler / has_valid_description: canonical posting text
    - RuleFilter: hard constraints over the job-posting store
    - SimilarityRanker / cosine_similarity: penalised cosine top-K
    - Reranker / apply_threshold: optional rerank plus the final cut
    - build_reasons: explanation lines for a ranked candidate
    - MatchCandidate: per-request working record
"""

from .filters import RuleFilter
from .models import MatchCandidate
from .reasons import build_reasons, format_salary
from .reranking import Reranker, RerankOutcome, apply_threshold
from .similarity import (
    SimilarityRanker,
    cosine_similarity,
    quality_penalty_factor,
    score_to_percent,
)
from .text import PLACEHOLDER_DESCRIPTIONS, TextAssembler, has_valid_description

__all__ = [
    "MatchCandidate",
    "TextAssembler",
    "has_valid_description",
    "PLACEHOLDER_DESCRIPTIONS",
    "RuleFilter",
    "SimilarityRanker",
    "cosine_similarity",
    "quality_penalty_factor",
    "score_to_percent",
    "Reranker",
    "RerankOutcome",
    "apply_threshold",
    "build_reasons",
    "format_salary",
]
