import asyncio
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
import logging

from ...availability.aggregation import aggregate_busy_times
from ...availability.cache_key import parse_args_for_cache, serialize_cache_key
from ...availability.types import BusyInterval, FreeBusyArgs, IntegrationCalendar, WatchChannel
from ...cache.store import CacheStore, DEFAULT_POLICY, FreshnessPolicy
from ...clients.calendar.async_freebusy import AsyncGoogleFreeBusyClient
from ...config import CacheSettings
from ...constants import CALENDAR_CACHE_FLAG
from ...exceptions.calendar import CalendarError
from ...flags import FeatureFlagSource
from ...utils.datetime import DateTimeLike, as_rfc3339, current_datetime_utc
from ...utils.log_sanitizer import sanitize_cache_key
from .api_service import google_calendar_ids, refresh_window

logger = logging.getLogger(__name__)


class AsyncCalendarAvailabilityService:
    """
    Async version of CalendarAvailabilityService.

    Cache stores are synchronous, so their calls run in a worker thread.

    Usage:
        async with async_calendar_service(credentials) as (aiogoogle, calendar_v3):
            client = AsyncGoogleFreeBusyClient(aiogoogle, calendar_v3, credential.id)
            service = AsyncCalendarAvailabilityService(client, credential.id, store, flags)
            busy = await service.get_availability(date_from, date_to, selected)
    """

    def __init__(
            self,
            client: AsyncGoogleFreeBusyClient,
            credential_id: int,
            cache_store: CacheStore,
            flags: FeatureFlagSource,
            settings: Optional[CacheSettings] = None,
            policy: FreshnessPolicy = DEFAULT_POLICY,
            clock: Callable[[], datetime] = current_datetime_utc
    ):
        self._client = client
        self._credential_id = credential_id
        self._cache_store = cache_store
        self._flags = flags
        self._settings = settings or CacheSettings()
        self._policy = policy
        self._clock = clock

    async def get_availability(
            self,
            date_from: DateTimeLike,
            date_to: DateTimeLike,
            selected_calendars: List[IntegrationCalendar]
    ) -> List[BusyInterval]:
        """Async version of CalendarAvailabilityService.get_availability."""
        selected_ids = google_calendar_ids(selected_calendars)
        if not selected_ids and selected_calendars:
            return []

        cache_enabled = self._flags.is_enabled(CALENDAR_CACHE_FLAG)
        try:
            calendar_ids = selected_ids or await self._client.list_calendar_ids()
            free_busy_data = await self.get_cache_or_fetch_availability(
                FreeBusyArgs(time_min=as_rfc3339(date_from), time_max=as_rfc3339(date_to), items=calendar_ids),
                cache_enabled=cache_enabled
            )
            busy_times = aggregate_busy_times(free_busy_data)
        except Exception as e:
            logger.error("There was an error contacting google calendar service: %s", e)
            raise

        logger.info("Async found %d busy intervals", len(busy_times))
        return busy_times

    async def get_cache_or_fetch_availability(
            self,
            args: FreeBusyArgs,
            cache_enabled: Optional[bool] = None
    ) -> Dict[str, Any]:
        if cache_enabled is None:
            cache_enabled = self._flags.is_enabled(CALENDAR_CACHE_FLAG)
        if not cache_enabled:
            logger.warning("Calendar cache is disabled - skipping")
            return await self.fetch_availability(args)

        now = self._clock()
        parsed_args = parse_args_for_cache(
            args, now, expand=self._settings.expand_windows, tz=self._settings.timezone
        )
        key = serialize_cache_key(parsed_args)
        cached = await asyncio.to_thread(self._cache_store.get, self._credential_id, key, now)
        if cached:
            logger.info("Cache hit for credential %s key=%s", self._credential_id, sanitize_cache_key(key))
            return cached.value

        logger.info("Cache miss for credential %s key=%s", self._credential_id, sanitize_cache_key(key))
        data = await self.fetch_availability(FreeBusyArgs(args.time_min, args.time_max, parsed_args.items))
        await self.set_availability_in_cache(key, data, now)
        return data

    async def fetch_availability(self, args: FreeBusyArgs) -> Dict[str, Any]:
        return await self._client.query_free_busy(args)

    async def set_availability_in_cache(self, key: str, data: Dict[str, Any], now: Optional[datetime] = None) -> None:
        await asyncio.to_thread(
            self._cache_store.upsert, self._credential_id, key, data, now or self._clock(), self._policy
        )

    async def fetch_availability_and_set_cache(self, selected_calendars: List[IntegrationCalendar]) -> Dict[str, Any]:
        now = self._clock()
        window = refresh_window(now, self._settings)
        window.items = google_calendar_ids(selected_calendars)
        parsed_args = parse_args_for_cache(
            window, now, expand=self._settings.expand_windows, tz=self._settings.timezone
        )
        data = await self.fetch_availability(parsed_args)
        await self.set_availability_in_cache(serialize_cache_key(parsed_args), data, now)
        return data

    async def list_calendars(self) -> List[IntegrationCalendar]:
        return await self._client.list_calendars()

    async def watch_calendar(
            self,
            calendar_id: str,
            address: str,
            token: Optional[str] = None,
            previous_channel: Optional[Dict[str, Any]] = None
    ) -> WatchChannel:
        await self.unwatch_calendar(previous_channel)
        return await self._client.watch(calendar_id, address, token)

    async def unwatch_calendar(self, channel_metadata: Optional[Dict[str, Any]]) -> bool:
        channel = WatchChannel.from_metadata(channel_metadata)
        if channel is None:
            logger.info("Skipped unwatch_calendar due to missing metadata")
            return False
        try:
            await self._client.stop_channel(channel)
        except CalendarError as e:
            logger.warning("Failed to stop watch channel %s: %s", channel.id, e)
            return False
        return True
