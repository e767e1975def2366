"""Time utilities."""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return a timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


def to_iso8601(value: datetime | None) -> str | None:
    """Render a timestamp as ISO-8601 UTC with a trailing Z.

    Naive datetimes are assumed to already be UTC (SQLite drops tzinfo).
    """
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
