"""HTTP clients for the external embedding and reranking services."""

from .base import BaseServiceClient
from .embedding import EmbeddingClient
from .exceptions import (
    ServiceClientError,
    ServiceConfigurationError,
    ServiceHTTPError,
    ServiceResponseError,
    ServiceTimeoutError,
)
from .reranker import RerankerClient, RerankMatch

__all__ = [
    "BaseServiceClient",
    "EmbeddingClient",
    "RerankerClient",
    "RerankMatch",
    "ServiceClientError",
    "ServiceHTTPError",
    "ServiceTimeoutError",
    "ServiceResponseError",
    "ServiceConfigurationError",
]
