"""Services built on the Google Calendar API."""

from . import calendar

__all__ = [
    "calendar",
]
