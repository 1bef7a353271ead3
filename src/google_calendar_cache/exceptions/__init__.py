from .base import GoogleCalendarCacheError, AuthenticationError, APIError
from .calendar import CalendarError, CalendarPermissionError, CalendarNotFoundError, MalformedResponseError
from .auth import InvalidCredentialsError
from .cache import CacheStoreError

__all__ = [
    "GoogleCalendarCacheError",
    "AuthenticationError",
    "APIError",
    "CalendarError",
    "CalendarPermissionError",
    "CalendarNotFoundError",
    "MalformedResponseError",
    "InvalidCredentialsError",
    "CacheStoreError",
]
