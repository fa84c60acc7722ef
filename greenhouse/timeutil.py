"""
Timestamp helpers shared by the API client and the date-range cache.

Everything is normalized to timezone-aware UTC. The canonical string form
(``2024-05-01T12:00:00+00:00``) is what goes into request paths and what the
cache compares when deciding whether a window is empty.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timezone
from typing import Union

from .exceptions import InvalidDateError

TimestampLike = Union[datetime, date, str, int, float]

# fromisoformat on 3.10 only takes 3 or 6 fractional digits
_FRACTION = re.compile(r"(?<=\d{2}:\d{2}:\d{2})\.(\d+)")


def _pad_fraction(match: "re.Match[str]") -> str:
    return "." + (match.group(1) + "000000")[:6]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: TimestampLike) -> datetime:
    """
    Parse ``value`` into an aware UTC datetime.

    Accepts datetimes (naive values are treated as UTC), dates (midnight
    UTC), epoch seconds, and ISO-8601 strings with an optional ``Z`` suffix.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, bool):
        raise InvalidDateError(value)
    elif isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as exc:
            raise InvalidDateError(value) from exc
    elif isinstance(value, str):
        normalized = value.strip().replace(" ", "T")
        if normalized.endswith(("Z", "z")):
            normalized = normalized[:-1] + "+00:00"
        normalized = _FRACTION.sub(_pad_fraction, normalized)
        try:
            parsed = datetime.fromisoformat(normalized)
        except ValueError as exc:
            raise InvalidDateError(value) from exc
    else:
        raise InvalidDateError(value)

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_timestamp(value: TimestampLike) -> str:
    """Canonical string form: UTC, second precision, explicit offset."""
    return parse_timestamp(value).isoformat(timespec="seconds")
