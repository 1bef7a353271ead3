from .base import APIError


class CalendarError(APIError):
    """Base exception for Calendar API errors."""
    pass


class CalendarPermissionError(CalendarError):
    """Raised when the user lacks permission for a calendar operation."""
    pass


class CalendarNotFoundError(CalendarError):
    """Raised when a calendar is not found."""
    pass


class MalformedResponseError(CalendarError):
    """Raised when a free/busy response is missing its calendars field."""
    pass
