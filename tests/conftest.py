import pytest
import sys
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import Mock, AsyncMock

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


@pytest.fixture
def fixed_now():
    """Fixed current time used by expansion tests."""
    return datetime(2024, 3, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock(fixed_now):
    """Clock returning fixed_now."""
    return Mock(return_value=fixed_now)


@pytest.fixture
def sample_free_busy_response():
    """Sample freebusy.query response."""
    return {
        "kind": "calendar#freeBusy",
        "timeMin": "2024-03-01T00:00:00.000Z",
        "timeMax": "2024-05-01T00:00:00.000Z",
        "calendars": {
            "alice@example.com": {
                "busy": [
                    {"start": "2024-03-18T09:00:00Z", "end": "2024-03-18T10:00:00Z"},
                    {"start": "2024-03-19T14:00:00Z", "end": "2024-03-19T15:30:00Z"},
                ]
            },
            "team@example.com": {"busy": []},
        },
    }


@pytest.fixture
def sample_calendar_list_response():
    """Sample calendarList.list response."""
    return {
        "items": [
            {"id": "alice@example.com", "summary": "Alice", "primary": True, "accessRole": "owner"},
            {"id": "holidays@group.v.calendar.google.com", "summary": "Holidays", "accessRole": "reader"},
            {"id": "team@example.com", "summary": "Team", "accessRole": "writer"},
        ]
    }


@pytest.fixture
def sample_channel_metadata():
    """Stored metadata of a watch channel."""
    return {
        "kind": "api#channel",
        "id": "channel-123",
        "resourceId": "resource-456",
        "resourceUri": "https://www.googleapis.com/calendar/v3/calendars/alice%40example.com/events",
        "expiration": "1712000000000",
    }


@pytest.fixture
def mock_calendar_service(sample_free_busy_response, sample_calendar_list_response):
    """Mock googleapiclient Calendar v3 service."""
    mock_service = Mock()
    mock_service.freebusy.return_value.query.return_value.execute.return_value = sample_free_busy_response
    mock_service.calendarList.return_value.list.return_value.execute.return_value = sample_calendar_list_response
    return mock_service


@pytest.fixture
def mock_async_calendar_context():
    """Mock aiogoogle instance and discovered calendar service."""
    mock_aiogoogle = AsyncMock()
    mock_calendar_service = Mock()
    return mock_aiogoogle, mock_calendar_service


@pytest.fixture
def google_calendars():
    """Selected Google calendars."""
    from src.google_calendar_cache.availability.types import IntegrationCalendar
    return [
        IntegrationCalendar(external_id="team@example.com", credential_id=1),
        IntegrationCalendar(external_id="alice@example.com", credential_id=1),
    ]


@pytest.fixture
def memory_store():
    from src.google_calendar_cache.cache.store import MemoryCacheStore
    return MemoryCacheStore()


@pytest.fixture
def sql_store():
    """SQL cache store on an in-memory SQLite database."""
    from src.google_calendar_cache.cache.sql_store import SqlCacheStore
    return SqlCacheStore.from_url("sqlite://")


@pytest.fixture
def cache_on():
    from src.google_calendar_cache.flags import StaticFeatureFlags
    return StaticFeatureFlags({"calendar-cache": True})


@pytest.fixture
def cache_off():
    from src.google_calendar_cache.flags import StaticFeatureFlags
    return StaticFeatureFlags({"calendar-cache": False})
