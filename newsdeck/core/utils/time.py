"""Time utilities for consistent timezone handling."""

from datetime import UTC, datetime


def utcnow() -> datetime:
    """
    Get current UTC time as a timezone-aware datetime.

    All timestamps in the application (item publish times, cache entry
    timestamps) are timezone-aware UTC so they compare totally.

    Returns:
        datetime: Current UTC time with timezone information.

    Example:
        >>> now = utcnow()
        >>> now.tzinfo == UTC
        True
    """
    return datetime.now(UTC)


def from_timestamp(seconds: float | int | None) -> datetime | None:
    """
    Convert a Unix timestamp to an aware UTC datetime.

    Returns None for missing or out-of-range values instead of raising.
    """
    if seconds is None:
        return None
    try:
        return datetime.fromtimestamp(float(seconds), UTC)
    except (OverflowError, OSError, ValueError, TypeError):
        return None


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def to_iso(value: datetime) -> str:
    """Serialize a datetime as an ISO-8601 UTC string."""
    return ensure_utc(value).isoformat()


def from_iso(value: str) -> datetime:
    """Parse an ISO-8601 string produced by to_iso()."""
    return ensure_utc(datetime.fromisoformat(value))


def format_age(value: datetime, now: datetime | None = None, suffix: str = " ago") -> str:
    """
    Format the age of a timestamp for display.

    Args:
        value: The timestamp to describe.
        now: Reference time (defaults to utcnow()).
        suffix: Appended to relative forms ("5m ago").

    Returns:
        "just now", "<n>m", "<n>h", "<n>d" (plus suffix), or YYYY-MM-DD
        for anything a week or older.
    """
    now = now or utcnow()
    seconds = int((now - ensure_utc(value)).total_seconds())

    if seconds < 60:
        return "just now"
    if seconds < 3600:
        return f"{seconds // 60}m{suffix}"
    if seconds < 86400:
        return f"{seconds // 3600}h{suffix}"
    if seconds < 7 * 86400:
        return f"{seconds // 86400}d{suffix}"
    return ensure_utc(value).strftime("%Y-%m-%d")
