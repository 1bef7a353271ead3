"""Calendar availability services."""

from .api_service import CalendarAvailabilityService, google_calendar_ids, refresh_window
from .async_api_service import AsyncCalendarAvailabilityService

__all__ = [
    "CalendarAvailabilityService",
    "AsyncCalendarAvailabilityService",
    "google_calendar_ids",
    "refresh_window",
]
