from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional
import logging

from ...auth.auth import get_calendar_service
from ...auth.credentials import CredentialPayload, google_credentials_from_payload
from ...availability.aggregation import aggregate_busy_times
from ...availability.cache_key import parse_args_for_cache, serialize_cache_key
from ...availability.types import BusyInterval, FreeBusyArgs, IntegrationCalendar, WatchChannel
from ...cache.store import CacheStore, DEFAULT_POLICY, FreshnessPolicy
from ...clients.calendar.freebusy import GoogleFreeBusyClient
from ...config import CacheSettings
from ...constants import CALENDAR_CACHE_FLAG, INTEGRATION_NAME
from ...exceptions.calendar import CalendarError
from ...flags import FeatureFlagSource
from ...utils.datetime import DateTimeLike, as_rfc3339, current_datetime_utc, month_start
from ...utils.log_sanitizer import sanitize_cache_key, sanitize_for_logging

logger = logging.getLogger(__name__)


def google_calendar_ids(selected_calendars: List[IntegrationCalendar]) -> List[str]:
    """External ids of the selected calendars that belong to Google Calendar."""
    return [
        calendar.external_id for calendar in selected_calendars
        if calendar.integration == INTEGRATION_NAME
    ]


def refresh_window(now: datetime, settings: CacheSettings) -> FreeBusyArgs:
    """
    Window refreshed proactively: from now to the last day of next month,
    the range booking pages browse.
    """
    current = now.astimezone(settings.timezone)
    last_day_of_next_month = month_start(current.year, current.month + 2, settings.timezone) - timedelta(days=1)
    return FreeBusyArgs(time_min=as_rfc3339(now), time_max=as_rfc3339(last_day_of_next_month))


class CalendarAvailabilityService:
    """
    Busy times of a user's Google calendars, served through the availability cache.

    One instance serves one credential; cache entries are scoped to that
    credential's id.
    """

    def __init__(
            self,
            client: GoogleFreeBusyClient,
            credential_id: int,
            cache_store: CacheStore,
            flags: FeatureFlagSource,
            settings: Optional[CacheSettings] = None,
            policy: FreshnessPolicy = DEFAULT_POLICY,
            clock: Callable[[], datetime] = current_datetime_utc
    ):
        """
        Initialize the availability service.

        Args:
            client: Calendar API client authorized for the credential
            credential_id: Identifier scoping cache entries
            cache_store: Where free/busy responses are cached
            flags: Feature flag source, consulted once per request
            settings: Cache settings (window expansion, timezone)
            policy: Expiry applied on cache writes
            clock: Source of the current time
        """
        self._client = client
        self._credential_id = credential_id
        self._cache_store = cache_store
        self._flags = flags
        self._settings = settings or CacheSettings()
        self._policy = policy
        self._clock = clock

    @classmethod
    def from_credential(
            cls,
            credential: CredentialPayload,
            app_keys: Dict[str, str],
            cache_store: CacheStore,
            flags: FeatureFlagSource,
            settings: Optional[CacheSettings] = None,
            on_refresh: Optional[Callable[[CredentialPayload], None]] = None
    ) -> "CalendarAvailabilityService":
        """
        Create a service for a stored credential.

        Args:
            credential: The stored Google credential
            app_keys: OAuth client with client_id and client_secret
            cache_store: Where free/busy responses are cached
            flags: Feature flag source
            settings: Cache settings
            on_refresh: Called with the credential after its token was refreshed

        Returns:
            CalendarAvailabilityService instance
        """
        credentials = google_credentials_from_payload(credential, app_keys, on_refresh)
        client = GoogleFreeBusyClient(get_calendar_service(credentials), credential.id)
        return cls(client, credential.id, cache_store, flags, settings)

    def get_availability(
            self,
            date_from: DateTimeLike,
            date_to: DateTimeLike,
            selected_calendars: List[IntegrationCalendar]
    ) -> List[BusyInterval]:
        """
        Busy intervals of the selected Google calendars between two instants.

        Args:
            date_from: Start of the requested range.
            date_to: End of the requested range.
            selected_calendars: Calendars the user selected, of any integration.
                When empty, every calendar in the user's calendar list is used.

        Returns:
            Busy intervals across all calendars. Empty when only calendars of
            other integrations were selected.

        Raises:
            CalendarError: If the Calendar API fails or returns no calendars field.
            CacheStoreError: If the cache store fails.
        """
        selected_ids = google_calendar_ids(selected_calendars)
        if not selected_ids and selected_calendars:
            # Only calendars of other integrations selected
            return []

        cache_enabled = self._flags.is_enabled(CALENDAR_CACHE_FLAG)
        try:
            calendar_ids = selected_ids or self._client.list_calendar_ids()
            free_busy_data = self.get_cache_or_fetch_availability(
                FreeBusyArgs(time_min=as_rfc3339(date_from), time_max=as_rfc3339(date_to), items=calendar_ids),
                cache_enabled=cache_enabled
            )
            busy_times = aggregate_busy_times(free_busy_data)
        except Exception as e:
            logger.error("There was an error contacting google calendar service: %s", e)
            raise

        logger.info("Found %d busy intervals", len(busy_times))
        return busy_times

    def get_cache_or_fetch_availability(
            self,
            args: FreeBusyArgs,
            cache_enabled: Optional[bool] = None
    ) -> Dict[str, Any]:
        """
        Free/busy response for a request, from the cache when possible.

        Args:
            args: Requested window and calendars.
            cache_enabled: Resolved calendar-cache flag. Read from the flag
                source when not given.

        Returns:
            The freebusy.query response.
        """
        if cache_enabled is None:
            cache_enabled = self._flags.is_enabled(CALENDAR_CACHE_FLAG)
        if not cache_enabled:
            logger.warning("Calendar cache is disabled - skipping")
            return self.fetch_availability(args)

        now = self._clock()
        parsed_args = parse_args_for_cache(
            args, now, expand=self._settings.expand_windows, tz=self._settings.timezone
        )
        key = serialize_cache_key(parsed_args)
        cached = self._cache_store.get(self._credential_id, key, now)
        if cached:
            logger.info("Cache hit for credential %s key=%s", self._credential_id, sanitize_cache_key(key))
            return cached.value

        logger.info("Cache miss for credential %s key=%s", self._credential_id, sanitize_cache_key(key))
        # The requested window is fetched as-is; the expanded one only names the entry
        data = self.fetch_availability(FreeBusyArgs(args.time_min, args.time_max, parsed_args.items))
        self.set_availability_in_cache(key, data, now)
        return data

    def fetch_availability(self, args: FreeBusyArgs) -> Dict[str, Any]:
        """Query the Calendar API directly, bypassing the cache."""
        return self._client.query_free_busy(args)

    def set_availability_in_cache(self, key: str, data: Dict[str, Any], now: Optional[datetime] = None) -> None:
        self._cache_store.upsert(self._credential_id, key, data, now or self._clock(), self._policy)

    def fetch_availability_and_set_cache(self, selected_calendars: List[IntegrationCalendar]) -> Dict[str, Any]:
        """
        Refresh the cached response covering now through the end of next month.

        Called when Google reports changes on a watched calendar.

        Args:
            selected_calendars: Calendars whose busy times to refresh.

        Returns:
            The fresh freebusy.query response.
        """
        now = self._clock()
        window = refresh_window(now, self._settings)
        window.items = google_calendar_ids(selected_calendars)
        parsed_args = parse_args_for_cache(
            window, now, expand=self._settings.expand_windows, tz=self._settings.timezone
        )
        sanitized = sanitize_for_logging(calendar_ids=parsed_args.items)
        logger.info("Refreshing availability cache for calendars=%s", sanitized['calendar_ids'])

        data = self.fetch_availability(parsed_args)
        self.set_availability_in_cache(serialize_cache_key(parsed_args), data, now)
        return data

    def list_calendars(self) -> List[IntegrationCalendar]:
        """The user's Google calendars."""
        try:
            return self._client.list_calendars()
        except CalendarError as e:
            logger.error("There was an error contacting google calendar service: %s", e)
            raise

    def watch_calendar(
            self,
            calendar_id: str,
            address: str,
            token: Optional[str] = None,
            previous_channel: Optional[Dict[str, Any]] = None
    ) -> WatchChannel:
        """
        Subscribe to change notifications for a calendar, replacing any previous channel.

        Args:
            calendar_id: Calendar to watch.
            address: Webhook URL Google will call.
            token: Shared secret echoed in X-Goog-Channel-Token.
            previous_channel: Stored metadata of the channel being replaced.

        Returns:
            The new channel; store its to_dict() to unwatch later.
        """
        self.unwatch_calendar(previous_channel)
        return self._client.watch(calendar_id, address, token)

    def unwatch_calendar(self, channel_metadata: Optional[Dict[str, Any]]) -> bool:
        """
        Stop a notification channel.

        Returns:
            True if a channel was stopped, False if there was nothing valid to stop
            or Google refused.
        """
        channel = WatchChannel.from_metadata(channel_metadata)
        if channel is None:
            logger.info("Skipped unwatch_calendar due to missing metadata")
            return False
        try:
            self._client.stop_channel(channel)
        except CalendarError as e:
            logger.warning("Failed to stop watch channel %s: %s", channel.id, e)
            return False
        return True
