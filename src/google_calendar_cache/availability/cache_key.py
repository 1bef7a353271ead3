import json
from datetime import datetime, timezone, tzinfo

from .types import FreeBusyArgs
from .window import handle_min_max


def parse_args_for_cache(
        args: FreeBusyArgs,
        now: datetime,
        expand: bool = True,
        tz: tzinfo = timezone.utc
) -> FreeBusyArgs:
    """
    Normalizes a free/busy request so that equivalent requests look identical.

    Calendar ids are sorted and the window is expanded to month boundaries
    (unless expansion is disabled). The input is left untouched.

    Args:
        args: The requested window and calendars.
        now: Current time, anchoring the month expansion.
        expand: Whether to expand the window.
        tz: Zone in which months are counted.

    Returns:
        A new, normalized FreeBusyArgs.
    """
    items = sorted(args.items)
    time_min, time_max = handle_min_max(args.time_min, args.time_max, now, expand=expand, tz=tz)
    return FreeBusyArgs(time_min=time_min, time_max=time_max, items=items)


def serialize_cache_key(normalized: FreeBusyArgs) -> str:
    """Compact JSON of an already-normalized request, fields in request-body order."""
    return json.dumps(normalized.to_request_body(), separators=(",", ":"))


def build_cache_key(
        args: FreeBusyArgs,
        now: datetime,
        expand: bool = True,
        tz: tzinfo = timezone.utc
) -> str:
    """
    Builds the cache key for a free/busy request.

    Example:
        build_cache_key(FreeBusyArgs("2024-04-10", "2024-04-20", ["b", "a"]), now)
        -> '{"timeMin":"2024-03-01T00:00:00.000Z","timeMax":"2024-05-01T00:00:00.000Z",
             "items":[{"id":"a"},{"id":"b"}]}'
    """
    return serialize_cache_key(parse_args_for_cache(args, now, expand=expand, tz=tz))
