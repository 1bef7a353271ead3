class GoogleCalendarCacheError(Exception):
    """Base exception for all calendar cache errors."""
    pass


class AuthenticationError(GoogleCalendarCacheError):
    """Raised when authentication fails."""
    pass


class APIError(GoogleCalendarCacheError):
    """Raised when API calls fail."""
    pass
