"""Persistence layer exceptions.

All persistence exceptions inherit from PersistenceError so callers can
catch every storage failure with a single except clause.
"""


class PersistenceError(Exception):
    """Base exception for all persistence layer errors."""

    pass


class DatabaseConnectionError(PersistenceError):
    """Raised when the database cannot be initialised or reached."""

    pass


class RecordNotFoundError(PersistenceError):
    """Raised when an operation requires a record that does not exist.

    Optional lookups return None instead.
    """

    pass


class DataIntegrityError(PersistenceError):
    """Raised on constraint violations (primary key, unique, foreign key)."""

    pass
