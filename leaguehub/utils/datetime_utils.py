"""
Datetime utility functions.
Provides replacements for deprecated datetime functions.
"""

from datetime import datetime
from typing import Optional, Union
import pytz


def utcnow() -> datetime:
    """
    Get current UTC datetime using pytz.UTC.

    Returns:
        Current UTC datetime with pytz timezone information
    """
    return datetime.now(pytz.UTC)


def isoformat_or_none(value: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime to ISO 8601, passing None through."""
    return value.isoformat() if value else None


def parse_suggested_date(date_input: Union[str, datetime, None]) -> Optional[datetime]:
    """
    Parse a client-supplied match date into a timezone-aware UTC datetime.

    Accepts ISO dates ("2026-01-21"), ISO datetimes with or without an offset
    ("2026-01-21T18:30:00", "2026-01-21T18:30:00Z") or a datetime object.
    Naive values are interpreted as UTC.

    Args:
        date_input: Date string, datetime, or None

    Returns:
        Aware datetime or None if no date was given

    Raises:
        ValueError: If the string cannot be parsed
    """
    if date_input is None or date_input == "":
        return None

    if isinstance(date_input, datetime):
        parsed = date_input
    elif isinstance(date_input, str):
        date_str = date_input.strip()
        if date_str.endswith("Z"):
            date_str = date_str[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(date_str)
        except ValueError:
            raise ValueError(f"Invalid date: {date_input}")
    else:
        raise ValueError(f"Expected string or datetime, got {type(date_input)}")

    if parsed.tzinfo is None:
        return pytz.UTC.localize(parsed)
    return parsed.astimezone(pytz.UTC)
