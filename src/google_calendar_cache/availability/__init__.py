"""Free/busy request normalization and response aggregation."""

from .types import BusyInterval, FreeBusyArgs, IntegrationCalendar, WatchChannel
from .window import expand_start, expand_end, handle_min_max
from .cache_key import parse_args_for_cache, serialize_cache_key, build_cache_key
from .aggregation import aggregate_busy_times

__all__ = [
    # Data types
    "BusyInterval",
    "FreeBusyArgs",
    "IntegrationCalendar",
    "WatchChannel",

    # Window expansion
    "expand_start",
    "expand_end",
    "handle_min_max",

    # Cache keys
    "parse_args_for_cache",
    "serialize_cache_key",
    "build_cache_key",

    # Aggregation
    "aggregate_busy_times",
]
