"""Shared utility functions for service layer."""
from datetime import UTC, datetime


def as_utc(value: datetime) -> datetime:
    """
    Normalize a timestamp to an aware UTC datetime.

    Naive values are treated as UTC; some database drivers (SQLite) return
    TIMESTAMP WITH TIME ZONE columns without tzinfo.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
