from datetime import datetime, timezone, tzinfo
from typing import Union

DateTimeLike = Union[str, datetime]


def current_datetime_utc() -> datetime:
    """
    Returns the current date and time in UTC.

    Returns:
        A timezone-aware datetime object.
    """
    return datetime.now(timezone.utc)


def parse_datetime(value: DateTimeLike) -> datetime:
    """
    Parses an RFC 3339 string (or passes a datetime through) into an aware datetime.

    Naive values are taken to be UTC. A trailing "Z" is accepted.

    Args:
        value: ISO/RFC 3339 string or datetime.

    Returns:
        A timezone-aware datetime.

    Raises:
        ValueError: If the string cannot be parsed.
    """
    if isinstance(value, datetime):
        dt = value
    else:
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def convert_datetime_to_iso(date_time: datetime) -> str:
    """
    Converts a datetime to a UTC ISO string with millisecond precision,
    e.g. "2024-03-01T00:00:00.000Z".

    Args:
        date_time: The datetime object to be converted. Naive values are UTC.

    Returns:
        The formatted string.
    """
    utc = parse_datetime(date_time).astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def month_start(year: int, month: int, tz: tzinfo = timezone.utc) -> datetime:
    """
    First instant of a month. Month numbers outside 1..12 carry into
    neighbouring years, so month_start(2024, 14) is 2025-02-01.
    """
    years, month_index = divmod(month - 1, 12)
    return datetime(year + years, month_index + 1, 1, tzinfo=tz)


def as_rfc3339(value: DateTimeLike) -> str:
    """Strings pass through unchanged, datetimes are formatted with convert_datetime_to_iso."""
    if isinstance(value, datetime):
        return convert_datetime_to_iso(value)
    return value
