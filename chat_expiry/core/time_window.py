"""Time window evaluation for chat and backup expiration.

Decides whether a timestamp is older than the retention threshold. The host
server reports timestamps in several shapes (epoch milliseconds, ISO-8601,
and its own "humanized" chat date format), so parsing is lenient: anything
that cannot be understood is treated as "no timestamp", and a record with no
timestamp never expires.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any

from chat_expiry.core.utils import to_aware_utc, whole_days_between

logger = logging.getLogger(__name__)

# 2024-7-12 @14h32m06s 123ms, also 2024-7-12@14h32m06s
_HUMANIZED_PATTERN = re.compile(
    r"^(\d{4})-(\d{1,2})-(\d{1,2})\s*@\s*(\d{1,2})h\s*(\d{1,2})m\s*(\d{1,2})s"
    r"(?:\s*(\d{1,3})\s*ms)?$"
)
# June 19, 2023 4:13pm
_LEGACY_PATTERN = re.compile(
    r"^([A-Za-z]+) (\d{1,2}), (\d{4}) (\d{1,2}):(\d{2}) ?([AaPp][Mm])$"
)
_NUMERIC_PATTERN = re.compile(r"^-?\d+(\.\d+)?$")

# chat_seraphina_20251005-153136.jsonl
BACKUP_TIMESTAMP_PATTERN = re.compile(r"_(\d{8}-\d{6})\.jsonl$")
BACKUP_TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"


def _from_epoch_ms(value: float) -> datetime | None:
    try:
        return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def _parse_humanized(match: re.Match[str]) -> datetime | None:
    year, month, day, hour, minute, second, millis = match.groups()
    try:
        return datetime(
            int(year),
            int(month),
            int(day),
            int(hour),
            int(minute),
            int(second),
            int(millis or 0) * 1000,
            tzinfo=timezone.utc,
        )
    except ValueError:
        return None


def _parse_legacy(text: str) -> datetime | None:
    normalized = text.upper()
    for fmt in ("%B %d, %Y %I:%M%p", "%B %d, %Y %I:%M %p", "%b %d, %Y %I:%M%p", "%b %d, %Y %I:%M %p"):
        try:
            return datetime.strptime(normalized, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue
    return None


def parse_timestamp(value: Any) -> datetime | None:
    """Parse a timestamp as delivered by the host server.

    Supported inputs:
        - ``datetime`` (naive values are treated as UTC)
        - numbers and numeric strings, as epoch milliseconds
        - ISO-8601 strings (``Z`` suffix, offset, or naive)
        - humanized chat dates: ``2024-7-12 @14h32m06s`` or ``2024-7-12@14h32m06s``
          (optional ``123ms``)
        - legacy chat dates: ``June 19, 2023 4:13pm``

    Args:
        value: Raw timestamp value.

    Returns:
        Timezone-aware UTC datetime, or None if the value is missing or
        cannot be parsed.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        return to_aware_utc(value)

    if isinstance(value, (int, float)):
        return _from_epoch_ms(float(value))

    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    if _NUMERIC_PATTERN.match(text):
        return _from_epoch_ms(float(text))

    match = _HUMANIZED_PATTERN.match(text)
    if match:
        return _parse_humanized(match)

    if _LEGACY_PATTERN.match(text):
        return _parse_legacy(text)

    try:
        return to_aware_utc(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        return None


def is_expired(timestamp: Any, threshold_days: int, now: datetime) -> bool:
    """Check whether a timestamp is older than the retention threshold.

    The age is the floored number of whole days between ``timestamp`` and
    ``now``. A record exactly ``threshold_days`` old is NOT expired; it must
    be strictly older.

    Args:
        timestamp: Raw or parsed timestamp (see ``parse_timestamp``).
        threshold_days: Retention threshold in days.
        now: Reference instant for the pass.

    Returns:
        True if the timestamp parses and its age exceeds the threshold.
    """
    parsed = parse_timestamp(timestamp)
    if parsed is None:
        return False
    return whole_days_between(parsed, now) > threshold_days


def backup_capture_instant(file_name: str) -> datetime | None:
    """Extract the capture instant encoded in a backup file name.

    Args:
        file_name: Backup file name, e.g. ``chat_seraphina_20250101-120000.jsonl``.

    Returns:
        The capture instant (UTC), or None if the suffix is absent or invalid.
    """
    match = BACKUP_TIMESTAMP_PATTERN.search(file_name or "")
    if not match:
        return None
    try:
        parsed = datetime.strptime(match.group(1), BACKUP_TIMESTAMP_FORMAT)
    except ValueError:
        logger.warning(f"Failed to parse backup timestamp: {file_name}, falling back to mtime")
        return None
    return parsed.replace(tzinfo=timezone.utc)
