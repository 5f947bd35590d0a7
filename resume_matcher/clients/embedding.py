"""Client for the text embedding service (POST /embed)."""

import math
from typing import List, Optional

import requests

from resume_matcher.logging import get_logger

from .base import BaseServiceClient
from .exceptions import ServiceConfigurationError, ServiceResponseError

logger = get_logger(__name__, component="client")


class EmbeddingClient(BaseServiceClient):
    """Turns text into a dense vector.

    API Details:
        Endpoint: {base_url}/embed
        Method: POST
        Body: {"text": "..."}
        Response: {"embedding": [float, ...]}
    """

    SERVICE_NAME = "embedding"

    def __init__(
        self,
        base_url: str,
        timeout: int = 30,
        user_agent: str = "ResumeMatcher/1.0",
        session: Optional[requests.Session] = None,
    ) -> None:
        if timeout <= 0:
            raise ServiceConfigurationError(f"Embedding timeout must be positive, got: {timeout}")
        super().__init__(base_url, user_agent=user_agent, session=session)
        self.timeout = timeout

    def embed_text(self, text: str) -> List[float]:
        """Embed one piece of text.

        Raises:
            ServiceResponseError: On blank input or a malformed vector
            ServiceHTTPError: On non-2xx responses or connection failures
            ServiceTimeoutError: When the service exceeds the timeout
        """
        if not text or not text.strip():
            raise ServiceResponseError("Cannot embed empty text")

        data = self._make_request(
            "/embed", timeout=self.timeout, method="POST", json_data={"text": text}
        )

        if not isinstance(data, dict):
            raise ServiceResponseError(
                f"Expected JSON object response, got {type(data).__name__}"
            )

        vector = data.get("embedding")
        if not isinstance(vector, list) or not vector:
            raise ServiceResponseError("Response field 'embedding' must be a non-empty array")

        try:
            floats = [float(value) for value in vector]
        except (TypeError, ValueError, OverflowError) as e:
            raise ServiceResponseError(f"Embedding contains non-numeric values: {e}") from e

        if not all(math.isfinite(value) for value in floats):
            raise ServiceResponseError("Embedding contains non-finite values")

        logger.debug(
            "Embedded text",
            extra={
                "event": "embedding.computed",
                "dimensions": len(floats),
                "text_length": len(text),
            },
        )
        return floats
