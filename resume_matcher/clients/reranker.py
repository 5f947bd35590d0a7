"""Client for the cross-encoder reranking service.

API Details:
    Health:  GET  {base_url}/health     -> {"status": "ok"}
    Rerank:  POST {base_url}/match-cv   {"cvText": str, "jdTexts": [str, ...]}
             -> {"matches": [{"jdIndex": int, "matchScore": number,
                              "scoreRatio": number}, ...]}
"""

import math
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

import requests

from resume_matcher.logging import get_logger

from .base import BaseServiceClient
from .exceptions import ServiceClientError, ServiceConfigurationError, ServiceResponseError

logger = get_logger(__name__, component="client")


@dataclass(frozen=True)
class RerankMatch:
    """One reranker verdict, referring back to the request by position."""

    jd_index: int
    match_score: float
    score_ratio: float


class RerankerClient(BaseServiceClient):
    """Scores a resume against a batch of job texts in one call."""

    SERVICE_NAME = "reranker"

    def __init__(
        self,
        base_url: str,
        timeout: int = 60,
        health_timeout: int = 5,
        user_agent: str = "ResumeMatcher/1.0",
        session: Optional[requests.Session] = None,
    ) -> None:
        if timeout <= 0 or health_timeout <= 0:
            raise ServiceConfigurationError(
                f"Reranker timeouts must be positive, got: {timeout}/{health_timeout}"
            )
        super().__init__(base_url, user_agent=user_agent, session=session)
        self.timeout = timeout
        self.health_timeout = health_timeout

    def check_health(self) -> bool:
        """Return True only when the service answers ``{"status": "ok"}``.

        Never raises; an unreachable or unhealthy service is logged and
        reported as False.
        """
        try:
            data = self._make_request("/health", timeout=self.health_timeout)
        except ServiceClientError as e:
            logger.warning(
                f"Reranker health check failed: {e}",
                extra={"event": "reranker.health.failed", "error_type": type(e).__name__},
            )
            return False

        healthy = isinstance(data, dict) and data.get("status") == "ok"
        if not healthy:
            logger.warning(
                "Reranker reported unhealthy status",
                extra={"event": "reranker.health.unhealthy", "payload": str(data)[:200]},
            )
        return healthy

    def match_cv(self, cv_text: str, jd_texts: Sequence[str]) -> List[RerankMatch]:
        """Score ``cv_text`` against every entry of ``jd_texts``.

        The answer must contain exactly one entry per job text with
        ``jdIndex`` values forming a permutation of ``0..len(jd_texts)-1``.

        Returns:
            Matches in the order the service returned them (empty when
            there is nothing to score)

        Raises:
            ServiceResponseError: On malformed or mismatched answers
            ServiceHTTPError: On non-2xx responses or connection failures
            ServiceTimeoutError: When the service exceeds the timeout
        """
        if not cv_text or not jd_texts:
            return []

        data = self._make_request(
            "/match-cv",
            timeout=self.timeout,
            method="POST",
            json_data={"cvText": cv_text, "jdTexts": list(jd_texts)},
        )

        if not isinstance(data, dict) or not isinstance(data.get("matches"), list):
            raise ServiceResponseError("Response must be an object with a 'matches' array")

        raw_matches = data["matches"]
        if len(raw_matches) != len(jd_texts):
            raise ServiceResponseError(
                f"Reranker returned {len(raw_matches)} matches for {len(jd_texts)} job texts"
            )

        matches = [self._parse_match(entry) for entry in raw_matches]

        indexes = sorted(match.jd_index for match in matches)
        if indexes != list(range(len(jd_texts))):
            raise ServiceResponseError(
                "Reranker jdIndex values do not cover the submitted job texts exactly once"
            )

        return matches

    @staticmethod
    def _parse_match(entry: Any) -> RerankMatch:
        if not isinstance(entry, dict):
            raise ServiceResponseError(f"Match entry must be an object, got {type(entry).__name__}")

        jd_index = entry.get("jdIndex")
        if isinstance(jd_index, bool) or not isinstance(jd_index, int):
            raise ServiceResponseError(f"Invalid jdIndex: {jd_index!r}")

        try:
            match_score = float(entry.get("matchScore"))
            score_ratio = float(entry.get("scoreRatio"))
        except (TypeError, ValueError, OverflowError) as e:
            raise ServiceResponseError(f"Non-numeric score in match entry {entry!r}") from e

        if not (math.isfinite(match_score) and math.isfinite(score_ratio)):
            raise ServiceResponseError(f"Non-finite score in match entry {entry!r}")

        if not (0.0 <= match_score <= 100.0 and 0.0 <= score_ratio <= 1.0):
            raise ServiceResponseError(f"Score out of range in match entry {entry!r}")

        return RerankMatch(jd_index=jd_index, match_score=match_score, score_ratio=score_ratio)
