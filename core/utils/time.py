"""
Time Utilities

The price list reports observation dates as ISO-8601 strings
(e.g. "2023-08-29T07:10:52.000Z"), but numeric epoch timestamps in seconds
or milliseconds are accepted as well. Everything is normalized into
timezone-aware UTC datetime objects for use in our Pydantic schemas.
"""

from datetime import datetime, timezone
from typing import Union

from dateutil import parser as dateparser


def to_utc_datetime(timestamp: Union[int, float]) -> datetime:
    """
    Convert a timestamp (seconds or milliseconds) to UTC datetime.

    Detection Logic:
        - If timestamp > 1e12 (1 trillion): Assumed to be milliseconds
        - Otherwise: Assumed to be seconds

    Args:
        timestamp: Unix timestamp in seconds or milliseconds

    Returns:
        datetime: Timezone-aware datetime object in UTC

    Raises:
        ValueError: If timestamp is negative or invalid

    Examples:
        >>> to_utc_datetime(1704110400000)
        datetime.datetime(2024, 1, 1, 12, 0, tzinfo=datetime.timezone.utc)

        >>> to_utc_datetime(1704110400)
        datetime.datetime(2024, 1, 1, 12, 0, tzinfo=datetime.timezone.utc)
    """
    if timestamp < 0:
        raise ValueError(f"Timestamp cannot be negative: {timestamp}")

    # Current time in seconds: ~1.7 billion, in milliseconds: ~1.7 trillion
    if timestamp > 1e12:
        timestamp = timestamp / 1000.0

    try:
        return datetime.fromtimestamp(timestamp, tz=timezone.utc)
    except (OSError, OverflowError, ValueError) as e:
        raise ValueError(f"Invalid timestamp: {timestamp}. Error: {e}")


def parse_timestamp(value: Union[str, int, float, datetime]) -> datetime:
    """
    Parse any supported timestamp representation into a UTC datetime.

    Args:
        value: ISO-8601 string, epoch seconds/milliseconds, or datetime

    Returns:
        datetime: Timezone-aware datetime object in UTC

    Raises:
        ValueError: If the value cannot be interpreted as a timestamp

    Examples:
        >>> parse_timestamp("2023-08-29T07:10:52.000Z")
        datetime.datetime(2023, 8, 29, 7, 10, 52, tzinfo=datetime.timezone.utc)

        >>> parse_timestamp(1704110400)
        datetime.datetime(2024, 1, 1, 12, 0, tzinfo=datetime.timezone.utc)

    Notes:
        - Naive datetimes and strings without an offset are assumed to be UTC
        - Booleans are rejected even though they are ints in Python
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid timestamp: {value!r}")

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)):
        return to_utc_datetime(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("Timestamp string is empty")
        try:
            dt = dateparser.isoparse(text)
        except ValueError:
            try:
                dt = dateparser.parse(text)
            except (ValueError, OverflowError) as e:
                raise ValueError(f"Invalid timestamp: {value!r}. Error: {e}")
    else:
        raise ValueError(f"Unsupported timestamp type: {type(value).__name__}")

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def current_utc_datetime() -> datetime:
    """
    Get current UTC datetime.

    Returns:
        datetime: Current time as timezone-aware datetime in UTC
    """
    return datetime.now(timezone.utc)
