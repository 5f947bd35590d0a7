"""Persistence layer for job postings and their embeddings.

Public API:
    # Database initialization and session management
    - init_database(database_url: str) -> None
    - get_session() -> ContextManager[Session]
    - close_database() -> None
    - get_engine() -> Engine

    # Repository classes
    - JobPostingRepository: active-posting queries for the rule filter
    - EmbeddingRepository: batch lookup / upsert / delete of stored vectors

    # Exceptions
    - PersistenceError: Base exception for all persistence errors
    - DatabaseConnectionError: Database connection/initialization failures
    - RecordNotFoundError: Required record not found
    - DataIntegrityError: Constraint violations

Example usage:
    >>> from resume_matcher.persistence import init_database, get_session, EmbeddingRepository
    >>>
    >>> init_database("sqlite:///./data/resume_matcher.db")
    >>>
    >>> with get_session() as session:
    ...     vectors = EmbeddingRepository(session).get_embeddings({1, 2, 3})
"""

# Database initialization and session management
from .database import close_database, get_engine, get_session, init_database

# Repository classes
from .repositories import EmbeddingRepository, JobPostingRepository

# Exceptions
from .exceptions import (
    DatabaseConnectionError,
    DataIntegrityError,
    PersistenceError,
    RecordNotFoundError,
)

__all__ = [
    # Database functions
    "init_database",
    "get_session",
    "close_database",
    "get_engine",
    # Repositories
    "JobPostingRepository",
    "EmbeddingRepository",
    # Exceptions
    "PersistenceError",
    "DatabaseConnectionError",
    "RecordNotFoundError",
    "DataIntegrityError",
]
