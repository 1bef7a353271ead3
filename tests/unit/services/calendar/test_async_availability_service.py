import pytest
from datetime import timedelta
from unittest.mock import AsyncMock, Mock

from src.google_calendar_cache.availability.types import BusyInterval, FreeBusyArgs, IntegrationCalendar
from src.google_calendar_cache.exceptions import CalendarError, MalformedResponseError
from src.google_calendar_cache.services.calendar.async_api_service import AsyncCalendarAvailabilityService


EXPANDED_KEY = (
    '{"timeMin":"2024-03-01T00:00:00.000Z","timeMax":"2024-05-01T00:00:00.000Z",'
    '"items":[{"id":"alice@example.com"},{"id":"team@example.com"}]}'
)


@pytest.fixture
def mock_async_client(sample_free_busy_response):
    client = AsyncMock()
    client.query_free_busy.return_value = sample_free_busy_response
    client.list_calendar_ids.return_value = ["alice@example.com"]
    return client


@pytest.fixture
def async_service_factory(mock_async_client, memory_store, clock):
    def factory(flags):
        return AsyncCalendarAvailabilityService(mock_async_client, 1, memory_store, flags, clock=clock)
    return factory


@pytest.mark.unit
@pytest.mark.calendar
class TestAsyncCalendarAvailabilityService:
    """Test cases for AsyncCalendarAvailabilityService."""

    @pytest.mark.asyncio
    async def test_cache_miss_then_hit(self, async_service_factory, cache_on, mock_async_client, memory_store,
                                       google_calendars, fixed_now):
        """Test that the first request fills the cache and the second is served from it."""
        service = async_service_factory(cache_on)

        first = await service.get_availability("2024-04-10T00:00:00Z", "2024-04-20T00:00:00Z", google_calendars)
        second = await service.get_availability("2024-04-02T00:00:00Z", "2024-05-05T00:00:00Z", google_calendars)

        assert first == second
        assert len(first) == 2
        mock_async_client.query_free_busy.assert_awaited_once_with(FreeBusyArgs(
            "2024-04-10T00:00:00Z", "2024-04-20T00:00:00Z", ["alice@example.com", "team@example.com"]
        ))
        assert memory_store.get(1, EXPANDED_KEY, fixed_now).expires_at == fixed_now + timedelta(days=30)

    @pytest.mark.asyncio
    async def test_busy_time_after_expanded_end_is_returned(self, async_service_factory, cache_on,
                                                            mock_async_client, google_calendars):
        """Test that a range ending past the normalized window still sees its last days."""
        def query_free_busy(args):
            busy = []
            if args.time_max >= "2024-05-03T10:00:00Z":
                busy.append({"start": "2024-05-03T09:00:00Z", "end": "2024-05-03T10:00:00Z"})
            return {"calendars": {"alice@example.com": {"busy": busy}}}

        mock_async_client.query_free_busy.side_effect = query_free_busy
        service = async_service_factory(cache_on)

        busy = await service.get_availability("2024-04-10T00:00:00Z", "2024-05-05T00:00:00Z", google_calendars)

        assert busy == [BusyInterval("2024-05-03T09:00:00Z", "2024-05-03T10:00:00Z")]
        assert mock_async_client.query_free_busy.await_args.args[0].time_max == "2024-05-05T00:00:00Z"

    @pytest.mark.asyncio
    async def test_cache_disabled(self, async_service_factory, cache_off, mock_async_client, memory_store,
                                  google_calendars):
        service = async_service_factory(cache_off)
        await service.get_availability("2024-04-10T00:00:00Z", "2024-04-20T00:00:00Z", google_calendars)

        assert mock_async_client.query_free_busy.await_args.args[0].time_min == "2024-04-10T00:00:00Z"
        assert len(memory_store) == 0

    @pytest.mark.asyncio
    async def test_other_integrations_only(self, async_service_factory, cache_on, mock_async_client):
        selected = [IntegrationCalendar(external_id="x", integration="office365_calendar")]
        assert await async_service_factory(cache_on).get_availability("2024-04-10", "2024-04-20", selected) == []
        mock_async_client.query_free_busy.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_no_selection_uses_all_calendars(self, async_service_factory, cache_off, mock_async_client):
        await async_service_factory(cache_off).get_availability("2024-04-10", "2024-04-20", [])
        mock_async_client.list_calendar_ids.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_missing_calendars_field(self, async_service_factory, cache_on, mock_async_client,
                                           google_calendars):
        mock_async_client.query_free_busy.return_value = {}
        with pytest.raises(MalformedResponseError):
            await async_service_factory(cache_on).get_availability("2024-04-10", "2024-04-20", google_calendars)

    @pytest.mark.asyncio
    async def test_upstream_error(self, async_service_factory, cache_on, mock_async_client, memory_store,
                                  google_calendars):
        mock_async_client.query_free_busy.side_effect = CalendarError("boom")
        with pytest.raises(CalendarError):
            await async_service_factory(cache_on).get_availability("2024-04-10", "2024-04-20", google_calendars)
        assert len(memory_store) == 0

    @pytest.mark.asyncio
    async def test_fetch_availability_and_set_cache(self, async_service_factory, cache_on, mock_async_client,
                                                    memory_store, google_calendars, fixed_now):
        service = async_service_factory(cache_on)
        await service.fetch_availability_and_set_cache(google_calendars)
        assert memory_store.get(1, EXPANDED_KEY, fixed_now) is not None

        busy = await service.get_availability("2024-04-10T00:00:00Z", "2024-04-20T00:00:00Z", google_calendars)
        assert busy[0] == BusyInterval("2024-03-18T09:00:00Z", "2024-03-18T10:00:00Z")
        assert mock_async_client.query_free_busy.await_count == 1

    @pytest.mark.asyncio
    async def test_unwatch(self, async_service_factory, cache_on, mock_async_client, sample_channel_metadata):
        service = async_service_factory(cache_on)
        assert await service.unwatch_calendar(None) is False
        assert await service.unwatch_calendar(sample_channel_metadata) is True
        mock_async_client.stop_channel.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unwatch_failure(self, async_service_factory, cache_on, mock_async_client,
                                   sample_channel_metadata):
        mock_async_client.stop_channel.side_effect = CalendarError("gone")
        assert await async_service_factory(cache_on).unwatch_calendar(sample_channel_metadata) is False

    @pytest.mark.asyncio
    async def test_watch_calendar(self, async_service_factory, cache_on, mock_async_client,
                                  sample_channel_metadata):
        mock_async_client.watch.return_value = Mock(id="new")
        channel = await async_service_factory(cache_on).watch_calendar(
            "alice@example.com", "https://example.com/webhook", previous_channel=sample_channel_metadata
        )
        assert channel.id == "new"
        mock_async_client.stop_channel.assert_awaited_once()
        mock_async_client.watch.assert_awaited_once_with("alice@example.com", "https://example.com/webhook", None)

    @pytest.mark.asyncio
    async def test_list_calendars(self, async_service_factory, cache_on, mock_async_client):
        mock_async_client.list_calendars.return_value = [IntegrationCalendar(external_id="a")]
        assert await async_service_factory(cache_on).list_calendars() == [IntegrationCalendar(external_id="a")]
