"""Datetime utilities for UTC timestamps.

Stock lot dates are stored as naive UTC datetimes so SQLite comparisons
between stored values and query parameters stay consistent.

Usage:
    from fridge_tracker.utils.datetime_utils import utc_now

    # For SQLAlchemy Column defaults
    created_at = Column(DateTime, default=utc_now)
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return current UTC time as a naive datetime.

    Returns:
        Current UTC datetime without tzinfo
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """Normalize an aware datetime to naive UTC; naive values pass through."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
