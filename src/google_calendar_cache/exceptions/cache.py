from .base import GoogleCalendarCacheError


class CacheStoreError(GoogleCalendarCacheError):
    """Raised when the cache store cannot be read or written."""
    pass
