import pytest
from unittest.mock import Mock
from aiogoogle.excs import HTTPError

from src.google_calendar_cache.availability.types import FreeBusyArgs, WatchChannel
from src.google_calendar_cache.clients.calendar.async_freebusy import AsyncGoogleFreeBusyClient
from src.google_calendar_cache.exceptions import (
    CalendarError,
    CalendarNotFoundError,
    CalendarPermissionError,
)


def make_async_http_error(status_code):
    mock_error_response = Mock()
    mock_error_response.status_code = status_code
    return HTTPError("Request failed", res=mock_error_response)


@pytest.mark.unit
@pytest.mark.calendar
class TestAsyncGoogleFreeBusyClient:
    """Test cases for AsyncGoogleFreeBusyClient."""

    @pytest.mark.asyncio
    async def test_query_free_busy(self, mock_async_calendar_context, sample_free_busy_response):
        """Test that freebusy.query is sent as the user."""
        aiogoogle, calendar_v3 = mock_async_calendar_context
        aiogoogle.as_user.return_value = sample_free_busy_response
        client = AsyncGoogleFreeBusyClient(aiogoogle, calendar_v3)

        result = await client.query_free_busy(FreeBusyArgs("t1", "t2", ["a@example.com"]))

        assert result == sample_free_busy_response
        calendar_v3.freebusy.query.assert_called_once_with(json={
            "timeMin": "t1",
            "timeMax": "t2",
            "items": [{"id": "a@example.com"}],
        })
        aiogoogle.as_user.assert_awaited_once_with(calendar_v3.freebusy.query.return_value)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code,error_type", [
        (403, CalendarPermissionError),
        (404, CalendarNotFoundError),
        (500, CalendarError),
    ])
    async def test_query_free_busy_errors(self, mock_async_calendar_context, status_code, error_type):
        aiogoogle, calendar_v3 = mock_async_calendar_context
        aiogoogle.as_user.side_effect = make_async_http_error(status_code)
        client = AsyncGoogleFreeBusyClient(aiogoogle, calendar_v3)

        with pytest.raises(error_type):
            await client.query_free_busy(FreeBusyArgs("t1", "t2", ["a@example.com"]))

    @pytest.mark.asyncio
    async def test_error_without_response(self, mock_async_calendar_context):
        aiogoogle, calendar_v3 = mock_async_calendar_context
        aiogoogle.as_user.side_effect = HTTPError("Connection reset")
        with pytest.raises(CalendarError):
            await AsyncGoogleFreeBusyClient(aiogoogle, calendar_v3).list_calendar_ids()

    @pytest.mark.asyncio
    async def test_list_calendar_ids(self, mock_async_calendar_context, sample_calendar_list_response):
        aiogoogle, calendar_v3 = mock_async_calendar_context
        aiogoogle.as_user.return_value = sample_calendar_list_response

        ids = await AsyncGoogleFreeBusyClient(aiogoogle, calendar_v3).list_calendar_ids()

        assert ids[0] == "alice@example.com"
        assert len(ids) == 3
        calendar_v3.calendarList.list.assert_called_once_with(fields="items(id)")

    @pytest.mark.asyncio
    async def test_list_calendars(self, mock_async_calendar_context, sample_calendar_list_response):
        aiogoogle, calendar_v3 = mock_async_calendar_context
        aiogoogle.as_user.return_value = sample_calendar_list_response

        calendars = await AsyncGoogleFreeBusyClient(aiogoogle, calendar_v3, credential_id=5).list_calendars()

        assert [c.name for c in calendars] == ["Alice", "Holidays", "Team"]
        assert [c.read_only for c in calendars] == [False, True, False]

    @pytest.mark.asyncio
    async def test_watch_and_stop(self, mock_async_calendar_context, sample_channel_metadata):
        aiogoogle, calendar_v3 = mock_async_calendar_context
        aiogoogle.as_user.return_value = sample_channel_metadata
        client = AsyncGoogleFreeBusyClient(aiogoogle, calendar_v3)

        channel = await client.watch("alice@example.com", "https://example.com/webhook")
        assert channel == WatchChannel.from_metadata(sample_channel_metadata)
        assert calendar_v3.events.watch.call_args.kwargs["calendarId"] == "alice@example.com"

        await client.stop_channel(channel)
        calendar_v3.channels.stop.assert_called_once_with(json={"id": "channel-123", "resourceId": "resource-456"})

    @pytest.mark.asyncio
    async def test_watch_unexpected_response(self, mock_async_calendar_context):
        aiogoogle, calendar_v3 = mock_async_calendar_context
        aiogoogle.as_user.return_value = {}
        with pytest.raises(CalendarError):
            await AsyncGoogleFreeBusyClient(aiogoogle, calendar_v3).watch("x", "https://example.com/webhook")
