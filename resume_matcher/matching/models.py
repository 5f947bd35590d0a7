"""Data models for the matching stages.

MatchCandidate is the per-request working record that flows from the rule
filter through similarity ranking and reranking to the final threshold.
It is never persisted; MatchSummary is its public, cacheable projection.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from resume_matcher.domain.models import JobPostingRecord, MatchSummary


@dataclass
class MatchCandidate:
    """One job posting under evaluation for a single request.

    Attributes:
        job: The job posting as returned by the rule filter
        assembled_text: Canonical text built by TextAssembler
        has_valid_description: Whether the description survived placeholder detection
        passed_rule_filter: Always True once constructed by the orchestrator
        raw_cosine_similarity: Cosine similarity of resume and posting vectors
        adjusted_cosine_similarity: Raw cosine after the data-quality penalty
        penalty_factor: Multiplier applied by the data-quality penalty (1.0 = none)
        raw_rerank_score: Reranker match percentage before the penalty
        adjusted_rerank_score: Reranker match percentage after the penalty
        raw_rerank_ratio: Reranker score ratio before the penalty
        final_score_ratio: Ratio used for the final ordering
        match_score_percent: Integer percentage used for thresholding
        reasons: Short human-readable explanation lines
    """

    job: JobPostingRecord
    assembled_text: str
    has_valid_description: bool
    passed_rule_filter: bool = True
    raw_cosine_similarity: float = 0.0
    adjusted_cosine_similarity: float = 0.0
    penalty_factor: float = 1.0
    raw_rerank_score: Optional[float] = None
    adjusted_rerank_score: Optional[float] = None
    raw_rerank_ratio: Optional[float] = None
    final_score_ratio: float = 0.0
    match_score_percent: int = 0
    reasons: List[str] = field(default_factory=list)

    @property
    def job_posting_id(self) -> int:
        return self.job.id

    @property
    def text_length(self) -> int:
        return len(self.assembled_text)

    @property
    def was_reranked(self) -> bool:
        return self.raw_rerank_ratio is not None

    def to_summary(self) -> MatchSummary:
        """Project the candidate onto the public result shape."""
        return MatchSummary(
            job_posting_id=self.job.id,
            title=self.job.title,
            employer_name=self.job.employer.name if self.job.employer else None,
            match_score_percent=self.match_score_percent,
            score_ratio=self.final_score_ratio,
            cosine_similarity=self.adjusted_cosine_similarity,
            raw_cosine_similarity=self.raw_cosine_similarity,
            reasons=list(self.reasons),
        )
