"""Domain models for the resume matcher."""

from .models import (
    Category,
    Employer,
    JobPostingEmbedding,
    JobPostingRecord,
    JobPostingStatus,
    MatchFilters,
    MatchOutcome,
    MatchResponse,
    MatchSummary,
    ResumeProfile,
    ScoreOneResult,
)

__all__ = [
    "Category",
    "Employer",
    "JobPostingEmbedding",
    "JobPostingRecord",
    "JobPostingStatus",
    "MatchFilters",
    "MatchOutcome",
    "MatchResponse",
    "MatchSummary",
    "ResumeProfile",
    "ScoreOneResult",
]
