"""Base client class with shared HTTP handling for the ML services.

Both the embedding provider and the reranker speak JSON over HTTP; this
module holds the request/response plumbing and the mapping of transport
failures into the ServiceClientError hierarchy.
"""

import logging
from typing import Any, Dict, Optional

import requests

from resume_matcher.logging import get_logger

from .exceptions import (
    ServiceConfigurationError,
    ServiceHTTPError,
    ServiceResponseError,
    ServiceTimeoutError,
)

logger = get_logger(__name__, component="client")


class BaseServiceClient:
    """Shared HTTP behaviour for ML service clients.

    Attributes:
        base_url: Service root URL without trailing slash
        user_agent: User-Agent header for HTTP requests
    """

    SERVICE_NAME = "service"

    def __init__(
        self,
        base_url: str,
        user_agent: str = "ResumeMatcher/1.0",
        session: Optional[requests.Session] = None,
    ) -> None:
        """Initialize client with configuration.

        Args:
            base_url: Root URL of the service (e.g. "http://127.0.0.1:8000")
            user_agent: User-Agent header for requests
            session: Optional pre-built requests session (shared pool, tests)

        Raises:
            ServiceConfigurationError: If base_url or user_agent is empty
        """
        if not base_url or not base_url.strip():
            raise ServiceConfigurationError(f"{self.SERVICE_NAME} base URL cannot be empty")
        if not user_agent or not user_agent.strip():
            raise ServiceConfigurationError("user_agent cannot be empty")

        self.base_url = base_url.strip().rstrip("/")
        self.user_agent = user_agent.strip()

        self._session = session or requests.Session()
        self._session.headers.update(
            {"User-Agent": self.user_agent, "Content-Type": "application/json"}
        )

    def close(self) -> None:
        """Release pooled connections."""
        self._session.close()

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _make_request(
        self,
        path: str,
        timeout: float,
        method: str = "GET",
        json_data: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Make HTTP request with error handling.

        Args:
            path: Path relative to base_url
            timeout: Request timeout in seconds
            method: HTTP method (default "GET")
            json_data: JSON body for POST requests

        Returns:
            Parsed JSON response

        Raises:
            ServiceHTTPError: On 4xx or 5xx HTTP status, or connection failure
            ServiceTimeoutError: On request timeout
            ServiceResponseError: On invalid JSON
        """
        url = self._url(path)

        try:
            logger.debug(
                f"HTTP {method} request to {url}",
                extra={
                    "event": "client.request",
                    "service": self.SERVICE_NAME,
                    "method": method,
                    "url": url,
                    "timeout": timeout,
                },
            )

            response = self._session.request(
                method=method,
                url=url,
                json=json_data,
                timeout=timeout,
            )

            if response.status_code >= 400:
                is_retryable = response.status_code >= 500
                log_level = logging.WARNING if is_retryable else logging.ERROR

                logger.log(
                    log_level,
                    f"HTTP {response.status_code} error from {url}",
                    extra={
                        "event": "client.http_error",
                        "service": self.SERVICE_NAME,
                        "status_code": response.status_code,
                        "url": url,
                    },
                )

                raise ServiceHTTPError(
                    f"HTTP {response.status_code}: {response.reason}",
                    status_code=response.status_code,
                    url=url,
                )

            try:
                data = response.json()
            except ValueError as e:
                # requests' JSONDecodeError subclasses ValueError
                logger.error(
                    f"Failed to parse JSON response from {url}",
                    extra={
                        "event": "client.invalid_response",
                        "service": self.SERVICE_NAME,
                        "error_type": "JSONDecodeError",
                        "url": url,
                    },
                )
                raise ServiceResponseError(
                    f"Failed to parse JSON response from {url}: {e}"
                ) from e

            logger.debug(
                "HTTP request succeeded",
                extra={
                    "event": "client.succeeded",
                    "service": self.SERVICE_NAME,
                    "status_code": response.status_code,
                    "url": url,
                },
            )
            return data

        except requests.exceptions.Timeout as e:
            logger.warning(
                f"Request to {url} timed out after {timeout} seconds",
                extra={
                    "event": "client.timeout",
                    "service": self.SERVICE_NAME,
                    "url": url,
                    "timeout": timeout,
                },
            )
            raise ServiceTimeoutError(
                f"Request to {url} timed out after {timeout} seconds",
                url=url,
            ) from e
        except requests.exceptions.RequestException as e:
            logger.error(
                f"Request to {url} failed: {e}",
                extra={
                    "event": "client.http_error",
                    "service": self.SERVICE_NAME,
                    "error_type": type(e).__name__,
                    "url": url,
                },
            )
            raise ServiceHTTPError(
                f"Request to {url} failed: {e}",
                status_code=0,
                url=url,
            ) from e
