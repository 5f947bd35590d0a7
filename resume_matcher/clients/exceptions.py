"""Custom exceptions for the ML service clients."""


class ServiceClientError(Exception):
    """Base exception for all service client errors.

    Catching this exception catches every failure talking to the embedding
    or reranking service. Callers decide whether to skip, fall back or abort.
    """

    pass


class ServiceHTTPError(ServiceClientError):
    """HTTP request failed with a 4xx or 5xx status, or never completed.

    A status code of 0 means the request failed before a response arrived
    (connection refused, DNS failure).
    """

    def __init__(self, message: str, status_code: int, url: str) -> None:
        """Initialize HTTP error with status code and URL.

        Args:
            message: Human-readable error message
            status_code: HTTP status code (e.g., 404, 500), 0 when no response
            url: URL that failed
        """
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class ServiceTimeoutError(ServiceClientError):
    """HTTP request did not complete within the configured timeout."""

    def __init__(self, message: str, url: str) -> None:
        super().__init__(message)
        self.url = url


class ServiceResponseError(ServiceClientError):
    """Response parsing or validation failed.

    Raised for invalid JSON, missing fields, non-numeric vectors, or a
    reranker answer whose entries do not line up with the request.
    """

    pass


class ServiceConfigurationError(ServiceClientError):
    """Invalid client configuration (empty base URL, timeout out of range)."""

    pass
