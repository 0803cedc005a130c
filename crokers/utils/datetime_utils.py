"""
Datetime utility functions.
Parsing and formatting for the date/time formats used on the wire.
"""

import re
from datetime import datetime, date
from typing import Optional
import pytz

_FRACTION_RE = re.compile(r"(?<=:\d\d)\.(\d+)")


def utcnow() -> datetime:
    """
    Get current UTC datetime using pytz.UTC.

    Returns:
        Current UTC datetime with pytz timezone information
    """
    return datetime.now(pytz.UTC)


def is_valid_timezone(name: str) -> bool:
    """Return True if name is a timezone known to the IANA database."""
    if not name or not name.strip():
        return False
    try:
        pytz.timezone(name)
    except pytz.UnknownTimeZoneError:
        return False
    return True


def parse_ymd(value: str) -> date:
    """
    Parse a date-only string in YYYY-MM-DD format.

    Raises:
        ValueError: If the string is not a valid calendar date
    """
    return datetime.strptime(value.strip(), "%Y-%m-%d").date()


def parse_timestamp(value: str) -> datetime:
    """
    Parse an RFC 3339 timestamp such as "2025-03-01T19:30:00Z" or
    "2025-03-01T19:30:00-05:00".

    Naive values are rejected: a timestamp without an offset is ambiguous.

    Returns:
        Timezone-aware datetime normalized to UTC

    Raises:
        ValueError: If the string is not a valid RFC 3339 timestamp
    """
    raw = value.strip()
    if raw.endswith("Z") or raw.endswith("z"):
        raw = raw[:-1] + "+00:00"
    # fromisoformat before 3.11 only takes 3 or 6 fraction digits
    raw = _FRACTION_RE.sub(lambda m: "." + (m.group(1) + "000000")[:6], raw, count=1)
    parsed = datetime.fromisoformat(raw)
    if parsed.tzinfo is None:
        raise ValueError(f"timestamp has no UTC offset: {value}")
    return parsed.astimezone(pytz.UTC)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Attach UTC to datetimes read back from stores that drop the offset (SQLite).
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return pytz.UTC.localize(value)
    return value.astimezone(pytz.UTC)


def isoformat(value) -> Optional[str]:
    """Format a date or datetime for JSON output; None stays None."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return as_utc(value).isoformat()
    return value.isoformat()
