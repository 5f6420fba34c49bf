"""UTC-everywhere time handling for jobs, photos and invoices."""

from datetime import date, datetime, timezone


def now_utc() -> datetime:
    """
    Current time in UTC.

    Every timestamp the engine stamps (created_at, start/end dates,
    uploaded_at) comes from here.
    """
    return datetime.now(timezone.utc)


def to_utc(dt: datetime) -> datetime:
    """
    Convert a datetime to UTC.

    Raises ValueError if datetime is naive (no timezone).
    """
    if dt.tzinfo is None:
        raise ValueError(
            "Cannot convert naive datetime to UTC. Datetime must be timezone-aware."
        )
    return dt.astimezone(timezone.utc)


def today_utc() -> date:
    """Current calendar date in UTC. Used as the default invoice date."""
    return now_utc().date()
