"""Core domain models for resumes, job postings, embeddings and match results.

This module defines the data structures shared across the matcher:
- ResumeProfile: candidate resume text plus its (optional) embedding
- JobPostingRecord: read-only job posting with employer and categories
- JobPostingEmbedding: persisted vector for one job posting
- MatchFilters: hard constraints applied before any scoring
- MatchSummary / MatchResponse / ScoreOneResult: public results
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator

from resume_matcher.utils.hashing import fingerprint_text
from resume_matcher.utils.timestamps import ensure_utc


class JobPostingStatus(str, Enum):
    """Lifecycle status of a job posting. Only ACTIVE postings are matched."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    RETIRED = "retired"


class MatchOutcome(str, Enum):
    """Result codes returned by the public matching operations."""

    OK = "OK"
    EMPTY_FILTER_RESULT = "EMPTY_FILTER_RESULT"
    NO_QUALIFYING_MATCHES = "NO_QUALIFYING_MATCHES"
    MISSING_RESUME_EMBEDDING = "MISSING_RESUME_EMBEDDING"
    STORAGE_ERROR = "STORAGE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class Employer(BaseModel):
    """Employer profile attached to a job posting."""

    id: Optional[int] = Field(None, description="Employer identifier")
    name: str = Field(..., description="Employer display name")
    industry: Optional[str] = Field(None, description="Industry / sector")
    size: Optional[str] = Field(None, description="Company size band")
    address: Optional[str] = Field(None, description="Postal address")
    website: Optional[str] = Field(None, description="Public website")
    description: Optional[str] = Field(None, description="Free-text company profile")


class Category(BaseModel):
    """Category (major / discipline) a job posting is tagged with."""

    id: int
    name: str


class JobPostingRecord(BaseModel):
    """Job posting as read from the job-posting store.

    Owned by the job-posting management collaborator; the matcher never
    writes it back.
    """

    id: int = Field(..., description="Job posting identifier")
    title: str = Field(..., description="Job title")
    description: Optional[str] = Field(None, description="Free-text job description")
    location: Optional[str] = Field(None, description="Work location")
    salary_min: Optional[float] = Field(None, ge=0, description="Lower salary bound")
    salary_max: Optional[float] = Field(None, ge=0, description="Upper salary bound")
    experience: Optional[str] = Field(None, description="Experience requirement")
    categories: List[Category] = Field(default_factory=list)
    employer: Optional[Employer] = None
    status: JobPostingStatus = Field(JobPostingStatus.ACTIVE)
    updated_at: Optional[datetime] = Field(None, description="Last edit of the posting (UTC)")

    @field_validator("updated_at")
    @classmethod
    def ensure_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Ensure datetime is timezone-aware and in UTC."""
        return ensure_utc(v)

    @property
    def is_active(self) -> bool:
        return self.status == JobPostingStatus.ACTIVE

    model_config = {"json_schema_extra": {"example": {
        "id": 42,
        "title": "Backend Engineer (Python)",
        "description": "Build and operate REST APIs for our hiring platform...",
        "location": "Ho Chi Minh City",
        "salary_min": 20000000,
        "salary_max": 35000000,
        "experience": "2 years",
        "categories": [{"id": 3, "name": "Information Technology"}],
        "employer": {"id": 7, "name": "Example Tech"},
        "status": "active",
        "updated_at": "2025-12-20T09:00:00Z",
    }}}


class JobPostingEmbedding(BaseModel):
    """Stored embedding for one job posting.

    The vector corresponds to the assembled posting text at ``updated_at``; it
    is stale once the posting is edited afterwards or the model changes.
    """

    job_posting_id: int
    vector: List[float] = Field(..., min_length=1)
    model_version: str
    updated_at: datetime

    @field_validator("updated_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        """Ensure datetime is timezone-aware and in UTC."""
        return ensure_utc(v)

    model_config = {"protected_namespaces": ()}

    def is_stale_for(self, posting: JobPostingRecord, model_version: str) -> bool:
        """Whether this vector can no longer stand in for ``posting``."""
        if self.model_version != model_version:
            return True
        if posting.updated_at is not None and self.updated_at < posting.updated_at:
            return True
        return False


class ResumeProfile(BaseModel):
    """Candidate resume as provided by the resume-processing collaborator."""

    owner_id: Union[int, str] = Field(..., description="Owning user identifier")
    raw_text: str = Field("", description="Extracted resume text")
    content_fingerprint: Optional[str] = Field(
        None, description="Stable hash of raw_text (computed when omitted)"
    )
    embedding_vector: Optional[List[float]] = None
    embedding_model_version: Optional[str] = None
    embedded_at: Optional[datetime] = None

    @field_validator("embedded_at")
    @classmethod
    def ensure_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Ensure datetime is timezone-aware and in UTC."""
        return ensure_utc(v)

    @model_validator(mode="after")
    def fill_fingerprint(self):
        """Derive the content fingerprint from the text when not supplied."""
        if not self.content_fingerprint and self.raw_text.strip():
            self.content_fingerprint = fingerprint_text(self.raw_text)
        return self

    @property
    def has_text(self) -> bool:
        return bool(self.raw_text and self.raw_text.strip())

    @property
    def has_vector(self) -> bool:
        return bool(self.embedding_vector)


class MatchFilters(BaseModel):
    """Hard constraints applied to the job-posting population.

    Every present field is AND-combined. Empty strings count as absent.
    """

    location: Optional[str] = Field(None, description="Case-insensitive location substring")
    min_salary: Optional[float] = Field(None, ge=0, description="Minimum of the posting's lower bound")
    max_salary: Optional[float] = Field(None, ge=0, description="Maximum of the posting's upper bound")
    experience: Optional[str] = Field(None, description="Case-insensitive experience substring")
    category_id: Optional[int] = Field(None, description="Category the posting must be tagged with")

    @field_validator("location", "experience")
    @classmethod
    def strip_text(cls, v: Optional[str]) -> Optional[str]:
        """Strip whitespace; blank strings become None."""
        if v is None:
            return None
        stripped = v.strip()
        return stripped or None

    def normalized(self) -> Dict[str, Any]:
        """Canonical mapping of the present filters (used for cache keys)."""
        data = self.model_dump(exclude_none=True)
        for key in ("location", "experience"):
            if key in data:
                data[key] = data[key].lower()
        return data

    @property
    def is_empty(self) -> bool:
        return not self.normalized()


class MatchSummary(BaseModel):
    """One ranked job posting in a match response."""

    job_posting_id: int
    title: str
    employer_name: Optional[str] = None
    match_score_percent: int = Field(..., description="0-100 match score")
    score_ratio: float
    cosine_similarity: float = Field(..., description="Penalty-adjusted cosine similarity")
    raw_cosine_similarity: float
    reasons: List[str] = Field(default_factory=list)


class MatchResponse(BaseModel):
    """Structured result of find_matches(); never raised, always returned."""

    code: MatchOutcome
    message: str
    candidates: List[MatchSummary] = Field(default_factory=list)
    reranked: bool = Field(False, description="Whether the reranker produced the final order")

    @property
    def ok(self) -> bool:
        """True for every non-failure outcome (including empty results)."""
        return self.code in (
            MatchOutcome.OK,
            MatchOutcome.EMPTY_FILTER_RESULT,
            MatchOutcome.NO_QUALIFYING_MATCHES,
        )


class ScoreOneResult(BaseModel):
    """On-demand similarity score for a single job posting."""

    job_posting_id: int
    match_score_percent: int
    cosine_similarity: float
