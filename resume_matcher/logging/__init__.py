"""Structured logging helpers shared by every matcher component."""

import logging
from typing import Optional


class ComponentLoggerAdapter(logging.LoggerAdapter):
    """LoggerAdapter that stamps a component name while keeping per-call extras."""

    def process(self, msg, kwargs):
        """Merge the adapter's static fields with the call's ``extra`` (call wins)."""
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def get_logger(name: str, component: Optional[str] = None):
    """Return a module logger, optionally bound to a component label.

    Args:
        name: Logger name (typically __name__)
        component: Component identifier added to every record (e.g. "orchestrator")

    Returns:
        Logger or ComponentLoggerAdapter instance

    Example:
        >>> logger = get_logger(__name__, component="reranker")
        >>> logger.info("Rerank skipped", extra={"event": "match.rerank.skipped"})
    """
    logger = logging.getLogger(name)

    if component:
        return ComponentLoggerAdapter(logger, {"component": component})

    return logger
