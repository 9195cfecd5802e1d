"""Shared datetime utilities for Chat Expiry.

All age arithmetic happens on timezone-aware UTC datetimes. Timestamps that
arrive without timezone information are assumed to already be UTC.
"""

from datetime import datetime, timezone

SECONDS_PER_DAY = 86400


def utc_now() -> datetime:
    """Get current UTC datetime (timezone-aware).

    Returns:
        A timezone-aware datetime object representing the current time in UTC.

    Example:
        >>> from chat_expiry.core.utils import utc_now
        >>> utc_now().tzinfo is not None
        True
    """
    return datetime.now(timezone.utc)


def to_aware_utc(dt: datetime) -> datetime:
    """Convert any datetime to timezone-aware UTC.

    - If naive: assumes UTC, adds tzinfo
    - If aware: converts to UTC

    Args:
        dt: A datetime object (naive or timezone-aware).

    Returns:
        A timezone-aware datetime object in UTC.

    Example:
        >>> from datetime import datetime
        >>> aware = to_aware_utc(datetime(2024, 1, 15, 10, 30))
        >>> aware.hour
        10
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def whole_days_between(earlier: datetime, later: datetime) -> int:
    """Number of complete days from ``earlier`` to ``later``, floored.

    Args:
        earlier: Start instant (naive values are treated as UTC).
        later: End instant (naive values are treated as UTC).

    Returns:
        Floor of the elapsed time in days. Negative if ``earlier`` is in
        the future relative to ``later``.
    """
    delta = to_aware_utc(later) - to_aware_utc(earlier)
    return int(delta.total_seconds() // SECONDS_PER_DAY)


def format_day(dt: datetime | None) -> str:
    """Format an instant as a short human date (``Jan 05, 2025``)."""
    if dt is None:
        return "Unknown"
    return to_aware_utc(dt).strftime("%b %d, %Y")


def plural(count: int, noun: str) -> str:
    """Render ``count noun`` with a trailing ``s`` unless count is 1."""
    return f"{count} {noun}{'' if count == 1 else 's'}"
