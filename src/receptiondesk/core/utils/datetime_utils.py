"""
Date and time utility functions for the reception desk backend.
"""

import re
from datetime import date, datetime, timezone
from typing import Any, Optional

from ...domain.errors import InvalidFieldValueError

_TIME_24H = re.compile(r"^(\d{1,2}):(\d{2})$")
_TIME_12H = re.compile(r"^(\d{1,2}):(\d{2})\s*(AM|PM)?$", re.IGNORECASE)


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, matching what the Mongo driver returns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def is_valid_date(date_str: str, format_str: str = "%Y-%m-%d") -> bool:
    """Check if date string is valid."""
    try:
        datetime.strptime(date_str, format_str)
        return True
    except (TypeError, ValueError):
        return False


def to_schedule_date(value: Any) -> Optional[str]:
    """Normalize a stored or supplied appointment date to YYYY-MM-DD.

    Older appointment documents hold a full datetime (or an ISO timestamp
    string) instead of the calendar date.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    text = str(value).strip()
    if is_valid_date(text[:10]):
        return text[:10]
    return text


def parse_date_param(value: Optional[str], field: str = "date") -> Optional[str]:
    """Validate an optional YYYY-MM-DD query/body value."""
    if value is None or value == "":
        return None
    if not is_valid_date(value):
        raise InvalidFieldValueError(field, value)
    return value


def convert_to_24_hour(time_str: Optional[str]) -> str:
    """Turn '9:30 AM' / '14:05' style session times into a sortable HH:MM key.

    Unrecognized strings are returned unchanged so they still sort stably.
    """
    if not time_str:
        return "00:00"
    text = time_str.strip()

    match = _TIME_24H.match(text)
    if match:
        return f"{int(match.group(1)):02d}:{match.group(2)}"

    match = _TIME_12H.match(text)
    if not match:
        return text

    hours = int(match.group(1))
    minutes = match.group(2)
    period = (match.group(3) or "").upper()
    if period == "PM" and hours != 12:
        hours += 12
    elif period == "AM" and hours == 12:
        hours = 0
    return f"{hours:02d}:{minutes}"
