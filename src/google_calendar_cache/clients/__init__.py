"""API clients for external calendar providers."""

from . import calendar

__all__ = [
    "calendar",
]
