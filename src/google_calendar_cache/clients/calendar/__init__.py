"""Google Calendar API clients for free/busy and calendar list access."""

from .freebusy import GoogleFreeBusyClient, raise_for_http_error, to_integration_calendar
from .async_freebusy import AsyncGoogleFreeBusyClient

__all__ = [
    "GoogleFreeBusyClient",
    "AsyncGoogleFreeBusyClient",
    "raise_for_http_error",
    "to_integration_calendar",
]
