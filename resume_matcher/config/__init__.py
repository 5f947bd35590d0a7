"""Configuration management for the resume matcher."""

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .loader import load_config, parse_config, validate_config_file
from .models import (
    DEFAULT_MODEL_VERSION,
    BackfillConfig,
    CacheConfig,
    EmbeddingConfig,
    HttpConfig,
    LogFormat,
    LoggingConfig,
    LogLevel,
    MatcherConfig,
    QualityPenaltyConfig,
    RankingConfig,
    RerankerConfig,
)

__all__ = [
    # Loader functions
    "load_config",
    "parse_config",
    "validate_config_file",
    "load_environment_config",
    # Configuration models
    "MatcherConfig",
    "EmbeddingConfig",
    "RerankerConfig",
    "RankingConfig",
    "QualityPenaltyConfig",
    "CacheConfig",
    "BackfillConfig",
    "LoggingConfig",
    "HttpConfig",
    "EnvironmentConfig",
    "DEFAULT_MODEL_VERSION",
    # Enums
    "LogLevel",
    "LogFormat",
    # Exceptions
    "ConfigurationError",
]
