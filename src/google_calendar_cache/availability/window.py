"""
Month-aligned expansion of free/busy query windows.

Booking pages ask for "this month" or "the next two months" and the exact
bounds drift by a few days as users browse. Rounding both bounds to whole
months lets those requests share one cache entry.
"""

from datetime import datetime, timezone, tzinfo
from typing import Tuple

from ..constants import NEXT_MONTH_OFFSET, TWO_MONTHS_OFFSET
from ..utils.datetime import DateTimeLike, as_rfc3339, convert_datetime_to_iso, month_start, parse_datetime


def expand_start(requested_start: DateTimeLike, now: datetime, tz: tzinfo = timezone.utc) -> datetime:
    """
    Expand the start of a window to the start of its month.

    Browsing into next month maps back to the start of the current month, so
    the entry computed for the current month is reused.

    Args:
        requested_start: Requested lower bound.
        now: Current time.
        tz: Zone in which months are counted.

    Returns:
        First instant of the chosen month.
    """
    start = parse_datetime(requested_start).astimezone(tz)
    current = parse_datetime(now).astimezone(tz)
    if start.year == current.year and start.month - current.month == NEXT_MONTH_OFFSET:
        return month_start(current.year, current.month, tz)
    return month_start(start.year, start.month, tz)


def expand_end(requested_end: DateTimeLike, now: datetime, tz: tzinfo = timezone.utc) -> datetime:
    """
    Expand the end of a window to a month boundary.

    Ends falling one or two months ahead are normalized to the start of the
    month two months after the current one.

    Args:
        requested_end: Requested upper bound.
        now: Current time.
        tz: Zone in which months are counted.

    Returns:
        First instant of the chosen month.
    """
    end = parse_datetime(requested_end).astimezone(tz)
    current = parse_datetime(now).astimezone(tz)
    if end.year == current.year and end.month - current.month in (NEXT_MONTH_OFFSET, TWO_MONTHS_OFFSET):
        return month_start(current.year, current.month + TWO_MONTHS_OFFSET, tz)
    return month_start(end.year, end.month, tz)


def handle_min_max(
        time_min: DateTimeLike,
        time_max: DateTimeLike,
        now: datetime,
        expand: bool = True,
        tz: tzinfo = timezone.utc
) -> Tuple[str, str]:
    """
    Returns the (time_min, time_max) pair used for caching.

    With expansion disabled the raw bounds pass through untouched.
    """
    if not expand:
        return as_rfc3339(time_min), as_rfc3339(time_max)
    return (
        convert_datetime_to_iso(expand_start(time_min, now, tz)),
        convert_datetime_to_iso(expand_end(time_max, now, tz)),
    )
