"""Environment variable loading and validation."""

import os
from typing import Optional
from urllib.parse import urlparse

from .exceptions import ConfigurationError

DEFAULT_ML_SERVICE_URL = "http://127.0.0.1:8000"
DEFAULT_DATABASE_URL = "sqlite:///./data/resume_matcher.db"
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class EnvironmentConfig:
    """Environment variable configuration holder."""

    def __init__(
        self,
        embedding_service_url: str = DEFAULT_ML_SERVICE_URL,
        rerank_service_url: str = DEFAULT_ML_SERVICE_URL,
        database_url: Optional[str] = None,
        log_level: Optional[str] = None,
        environment: Optional[str] = None,
    ):
        self.embedding_service_url = embedding_service_url.rstrip("/")
        self.rerank_service_url = rerank_service_url.rstrip("/")
        self.database_url = database_url or DEFAULT_DATABASE_URL
        self.log_level = log_level
        self.environment = environment or "local"


def load_environment_config() -> EnvironmentConfig:
    """
    Load and validate environment variables.

    All variables are optional:
    - ML_SERVICE_URL: Base URL of the ML service hosting /embed and /match-cv
      (default: http://127.0.0.1:8000)
    - EMBEDDING_SERVICE_URL: Override base URL for the embedding service only
    - RERANK_SERVICE_URL: Override base URL for the reranking service only
    - DATABASE_URL: Job-posting store (default: sqlite:///./data/resume_matcher.db)
    - LOG_LEVEL: Override log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - ENVIRONMENT: Environment label attached to every log record

    Returns:
        EnvironmentConfig object with validated values

    Raises:
        ConfigurationError: If any variable is set to an invalid value
    """
    errors = []

    ml_service_url = os.getenv("ML_SERVICE_URL") or DEFAULT_ML_SERVICE_URL
    embedding_service_url = os.getenv("EMBEDDING_SERVICE_URL") or ml_service_url
    rerank_service_url = os.getenv("RERANK_SERVICE_URL") or ml_service_url
    database_url = os.getenv("DATABASE_URL")
    log_level = os.getenv("LOG_LEVEL")
    environment = os.getenv("ENVIRONMENT")

    for name, value in (
        ("ML_SERVICE_URL", ml_service_url),
        ("EMBEDDING_SERVICE_URL", embedding_service_url),
        ("RERANK_SERVICE_URL", rerank_service_url),
    ):
        if not _is_http_url(value):
            errors.append(f"Invalid {name}: '{value}'. Must be an http(s) URL.")

    if log_level and log_level.upper() not in VALID_LOG_LEVELS:
        errors.append(
            f"Invalid LOG_LEVEL: '{log_level}'. Must be one of: {', '.join(VALID_LOG_LEVELS)}"
        )

    if errors:
        raise ConfigurationError(
            "Environment variable validation failed",
            errors=errors,
            suggestions=[
                "Copy .env.example to .env and adjust the service URLs",
                "Service URLs look like http://host:port (no trailing path)",
            ],
        )

    return EnvironmentConfig(
        embedding_service_url=embedding_service_url,
        rerank_service_url=rerank_service_url,
        database_url=database_url,
        log_level=log_level.upper() if log_level else None,
        environment=environment,
    )


def _is_http_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)
