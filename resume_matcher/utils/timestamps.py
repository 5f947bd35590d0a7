"""UTC timestamp helpers.

All timestamps inside the matcher are timezone-aware UTC. Storage keeps
them as ISO-8601 strings with a trailing 'Z'.
"""

from datetime import datetime, timezone
from typing import Optional

STORAGE_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Make a datetime timezone-aware UTC.

    Naive datetimes are assumed to already be UTC; aware ones are converted.

    Example:
        >>> ensure_utc(datetime(2025, 12, 20, 9, 0)).tzinfo == timezone.utc
        True
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_timestamp(dt: Optional[datetime]) -> Optional[str]:
    """Format a datetime for storage (``2025-12-20T09:00:00.000000Z``)."""
    dt_utc = ensure_utc(dt)
    if dt_utc is None:
        return None
    return dt_utc.strftime(STORAGE_FORMAT)


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 string into a UTC datetime.

    Accepts the storage format as well as anything ``datetime.fromisoformat``
    understands once a trailing 'Z' is rewritten to ``+00:00``.

    Returns:
        Timezone-aware UTC datetime, or None for empty / unparseable input
    """
    if not value or not value.strip():
        return None

    cleaned = value.strip()
    if cleaned.endswith("Z"):
        cleaned = cleaned[:-1] + "+00:00"

    try:
        return ensure_utc(datetime.fromisoformat(cleaned))
    except ValueError:
        return None
