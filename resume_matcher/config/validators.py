"""Additional validation utilities for configuration."""

import warnings
from typing import Any, Dict, List

# Calibrated business constants; changing them shifts every score.
_CALIBRATED_QUALITY = {
    "no_description_max_length": 400,
    "no_description_factor": 0.25,
    "short_text_max_length": 100,
    "short_text_factor": 0.8,
}


def check_for_warnings(config_dict: Dict[str, Any]) -> List[str]:
    """
    Check configuration for potential issues and return warnings.

    Args:
        config_dict: Raw configuration dictionary

    Returns:
        List of warning messages
    """
    warning_messages = []

    ranking = config_dict.get("ranking", {})
    if isinstance(ranking, dict):
        top_k = ranking.get("top_k", 50)
        top_n = ranking.get("top_n", 10)
        if isinstance(top_k, int) and isinstance(top_n, int) and top_n > top_k:
            warning_messages.append(
                f"ranking.top_n ({top_n}) is larger than ranking.top_k ({top_k}); "
                f"at most {top_k} candidates can be returned"
            )

        min_percent = ranking.get("min_match_percent", 50)
        if isinstance(min_percent, int) and min_percent != 50:
            warning_messages.append(
                f"ranking.min_match_percent changed from 50 to {min_percent}"
            )

        quality = ranking.get("quality", {})
        if isinstance(quality, dict):
            for key, calibrated in _CALIBRATED_QUALITY.items():
                if key in quality and quality[key] != calibrated:
                    warning_messages.append(
                        f"ranking.quality.{key} changed from calibrated value "
                        f"{calibrated} to {quality[key]}"
                    )

    embedding = config_dict.get("embedding", {})
    if isinstance(embedding, dict):
        max_concurrency = embedding.get("max_concurrency", 4)
        if isinstance(max_concurrency, int) and max_concurrency > 16:
            warning_messages.append(
                f"High embedding.max_concurrency ({max_concurrency}) may overload the embedding service"
            )

    reranker = config_dict.get("reranker", {})
    if isinstance(reranker, dict) and reranker.get("enabled") is False:
        warning_messages.append("Reranker disabled; results use cosine similarity only")

    return warning_messages


def emit_warnings(warning_messages: List[str]) -> None:
    """Emit each message as a UserWarning."""
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)
