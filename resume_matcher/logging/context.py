"""Context propagation for structured logging.

Fields pushed here (request_id, resume fingerprint, job_posting_id, ...) are
attached to every record emitted inside the scope. Backed by contextvars so
each thread of the embedding fan-out and each concurrent request keeps its
own view.
"""

from contextvars import ContextVar, Token
from typing import Any, Dict, Optional

LogContextVar: ContextVar[Dict[str, Any]] = ContextVar("log_context", default={})


def get_log_context() -> Dict[str, Any]:
    """Return a copy of the active logging context."""
    return LogContextVar.get().copy()


def push_log_context(**kwargs) -> Token:
    """Merge fields into the active context.

    Args:
        **kwargs: Fields to add (existing keys are overridden)

    Returns:
        Token to hand back to pop_log_context()

    Example:
        >>> token = push_log_context(request_id="3f9c", resume_fingerprint="ab12")
        >>> pop_log_context(token)
    """
    current = LogContextVar.get()
    return LogContextVar.set({**current, **kwargs})


def pop_log_context(token: Token) -> None:
    """Restore the context that was active before push_log_context()."""
    LogContextVar.reset(token)


def clear_log_context() -> None:
    """Drop every context field (used by tests)."""
    LogContextVar.set({})


class log_context:
    """Context manager pushing fields for the duration of a block.

    Example:
        >>> with log_context(request_id="3f9c"):
        ...     logger.info("Rule filter completed")
    """

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.token: Optional[Token] = None

    def __enter__(self):
        self.token = push_log_context(**self.kwargs)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.token is not None:
            pop_log_context(self.token)
        return False
