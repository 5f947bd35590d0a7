"""Configuration schema models using Pydantic."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .duration import DurationParseError, parse_duration, validate_duration_range

DEFAULT_MODEL_VERSION = "all-MiniLM-L6-v2"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


class EmbeddingConfig(BaseModel):
    """Embedding service settings."""

    model_version: str = Field(
        DEFAULT_MODEL_VERSION, min_length=1, description="Embedding model the vectors come from"
    )
    timeout: int = Field(30, ge=1, le=300, description="POST /embed timeout (seconds)")
    max_concurrency: int = Field(
        4, ge=1, le=32, description="Concurrent on-the-fly embedding calls per request"
    )

    @field_validator("model_version")
    @classmethod
    def strip_model_version(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("model_version cannot be empty")
        return stripped

    model_config = {"protected_namespaces": ()}


class RerankerConfig(BaseModel):
    """Reranking service settings."""

    enabled: bool = Field(True, description="Use the reranker when it reports healthy")
    health_timeout: int = Field(5, ge=1, le=60, description="GET /health timeout (seconds)")
    timeout: int = Field(60, ge=1, le=600, description="POST /match-cv timeout (seconds)")


class QualityPenaltyConfig(BaseModel):
    """Data-quality penalty applied to postings with thin text.

    First matching tier wins:
    1. no valid description and text shorter than no_description_max_length
    2. text shorter than short_text_max_length
    """

    no_description_max_length: int = Field(400, ge=0)
    no_description_factor: float = Field(0.25, ge=0.0, le=1.0)
    short_text_max_length: int = Field(100, ge=0)
    short_text_factor: float = Field(0.8, ge=0.0, le=1.0)


class RankingConfig(BaseModel):
    """Shortlist sizes and final cut-off."""

    top_k: int = Field(50, ge=1, le=1000, description="Candidates kept after cosine ranking")
    top_n: int = Field(10, ge=1, le=100, description="Candidates kept after reranking")
    min_match_percent: int = Field(
        50, ge=0, le=100, description="Candidates at or below this score are dropped"
    )
    quality: QualityPenaltyConfig = Field(default_factory=QualityPenaltyConfig)


class CacheConfig(BaseModel):
    """Result cache settings."""

    ttl: str = Field("1h", description="How long a cached result stays fresh")
    sweep_threshold: int = Field(
        100, ge=1, description="Entry count above which expired entries are swept"
    )

    # Computed field
    ttl_seconds: Optional[int] = None

    @field_validator("ttl")
    @classmethod
    def validate_ttl(cls, v: str) -> str:
        try:
            validate_duration_range(parse_duration(v), min_seconds=1, max_seconds=7 * 86400)
        except DurationParseError as e:
            raise ValueError(str(e)) from e
        return v

    @model_validator(mode="after")
    def compute_ttl_seconds(self):
        self.ttl_seconds = parse_duration(self.ttl)
        return self


class BackfillConfig(BaseModel):
    """Periodic embedding backfill for postings with missing or stale vectors."""

    enabled: bool = Field(False, description="Run the backfill on a schedule")
    interval: str = Field("30m", description="Time between backfill runs")
    batch_size: int = Field(200, ge=1, le=10000, description="Postings embedded per run")

    # Computed field
    interval_seconds: Optional[int] = None

    @field_validator("interval")
    @classmethod
    def validate_interval(cls, v: str) -> str:
        try:
            validate_duration_range(parse_duration(v), min_seconds=60, max_seconds=86400)
        except DurationParseError as e:
            raise ValueError(str(e)) from e
        return v

    @model_validator(mode="after")
    def compute_interval_seconds(self):
        self.interval_seconds = parse_duration(self.interval)
        return self


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(
        LogFormat.KEY_VALUE, description="Log output format (json or key-value)"
    )

    model_config = {"use_enum_values": True}


class HttpConfig(BaseModel):
    """Settings shared by the service clients."""

    user_agent: str = Field("ResumeMatcher/1.0", min_length=1)

    @field_validator("user_agent")
    @classmethod
    def strip_user_agent(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("user_agent cannot be empty")
        return stripped


class MatcherConfig(BaseModel):
    """Root configuration object for the resume matcher."""

    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    reranker: RerankerConfig = Field(default_factory=RerankerConfig)
    ranking: RankingConfig = Field(default_factory=RankingConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    backfill: BackfillConfig = Field(default_factory=BackfillConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    http: HttpConfig = Field(default_factory=HttpConfig)

    model_config = {"extra": "forbid"}
