"""
Log sanitization utilities to prevent PII and sensitive data leakage.

Google calendar ids are usually the owner's email address, and cache keys
embed those ids, so neither should reach the logs verbatim.
"""

import hashlib
from typing import List, Optional


def sanitize_email(email: str) -> str:
    """
    Sanitize email address for logging by showing only domain and length.

    Args:
        email: Email address to sanitize

    Returns:
        Sanitized email representation

    Example:
        "user@example.com" -> "***@example.com (16 chars)"
    """
    if not email or '@' not in email:
        return "[invalid-email]"

    local_part, domain = email.split('@', 1)
    return f"***@{domain} ({len(email)} chars)"


def sanitize_calendar_id(calendar_id: str) -> str:
    """
    Sanitize a calendar id. Email-shaped ids keep only their domain,
    "primary" and other opaque ids are shown as-is.
    """
    if not calendar_id:
        return "[no-calendar-id]"
    if '@' in calendar_id:
        return sanitize_email(calendar_id)
    return calendar_id


def sanitize_calendar_ids(calendar_ids: List[str]) -> str:
    """
    Sanitize a list of calendar ids for logging.

    Args:
        calendar_ids: Calendar identifiers

    Returns:
        Count plus the set of domains involved
    """
    if not calendar_ids:
        return "[]"

    domains = set()
    for calendar_id in calendar_ids:
        if calendar_id and '@' in calendar_id:
            domains.add(calendar_id.split('@', 1)[1])

    return f"[{len(calendar_ids)} calendars from domains: {', '.join(sorted(domains))}]"


def sanitize_cache_key(key: Optional[str]) -> str:
    """
    Replace a cache key by a short digest so hits and misses can still be
    correlated across log lines.
    """
    if not key:
        return "[no-key]"
    digest = hashlib.sha256(key.encode("utf-8")).hexdigest()[:12]
    return f"[key:{digest}] ({len(key)} chars)"


def sanitize_for_logging(**kwargs) -> dict:
    """
    Sanitize multiple fields for logging in one call.

    Args:
        **kwargs: Fields to sanitize (calendar_ids, calendar_id, key, email, ...)

    Returns:
        Dictionary with sanitized values
    """
    sanitized = {}

    for key, value in kwargs.items():
        if key == 'calendar_ids' and isinstance(value, list):
            sanitized[key] = sanitize_calendar_ids(value)
        elif key == 'calendar_id':
            sanitized[key] = sanitize_calendar_id(value) if value else None
        elif key in ('key', 'cache_key'):
            sanitized[key] = sanitize_cache_key(value)
        elif key == 'email' and isinstance(value, str):
            sanitized[key] = sanitize_email(value)
        else:
            # Timestamps, counts and flags carry no PII
            sanitized[key] = value

    return sanitized
