from datetime import timedelta

INTEGRATION_NAME = "google_calendar"

# Feature flag gating the free/busy cache
CALENDAR_CACHE_FLAG = "calendar-cache"

# Entry freshness
CACHE_CREATE_TTL = timedelta(days=30)
CACHE_UPDATE_TTL = timedelta(minutes=1)

# Expansion offsets, in months from the current month
NEXT_MONTH_OFFSET = 1
TWO_MONTHS_OFFSET = 2

CALENDAR_LIST_FIELDS = "items(id,summary,primary,accessRole)"
CALENDAR_ID_FIELDS = "items(id)"
WRITABLE_ACCESS_ROLES = ("writer", "owner")

# Push notification channels
WATCH_CHANNEL_KIND = "api#channel"
WATCH_CHANNEL_TYPE = "web_hook"
WATCH_CHANNEL_TTL = timedelta(days=30)

SCOPES = [
    "https://www.googleapis.com/auth/calendar.readonly",
    "https://www.googleapis.com/auth/calendar.events",
]
