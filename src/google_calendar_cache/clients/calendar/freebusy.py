import logging
import uuid
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from googleapiclient.errors import HttpError

from ...availability.types import FreeBusyArgs, IntegrationCalendar, WatchChannel
from ...constants import (
    CALENDAR_ID_FIELDS, CALENDAR_LIST_FIELDS, INTEGRATION_NAME, WATCH_CHANNEL_TTL,
    WATCH_CHANNEL_TYPE, WRITABLE_ACCESS_ROLES
)
from ...exceptions.calendar import CalendarError, CalendarNotFoundError, CalendarPermissionError
from ...utils.log_sanitizer import sanitize_for_logging

if TYPE_CHECKING:
    from googleapiclient.discovery import Resource

logger = logging.getLogger(__name__)


def raise_for_http_error(e: HttpError, action: str) -> None:
    """Translate an HttpError into the matching CalendarError."""
    if e.resp.status == 403:
        raise CalendarPermissionError(f"Permission denied {action}: {e}")
    elif e.resp.status == 404:
        raise CalendarNotFoundError(f"Calendar not found {action}: {e}")
    else:
        raise CalendarError(f"Calendar API error {action}: {e}")


def to_integration_calendar(calendar_data: Dict[str, Any], credential_id: Optional[int] = None) -> IntegrationCalendar:
    """
    Create an IntegrationCalendar from a calendarList entry.

    Args:
        calendar_data: Dictionary with id, summary, primary and accessRole
        credential_id: Credential the calendar list was read with

    Returns:
        IntegrationCalendar instance
    """
    calendar_id = calendar_data.get("id")
    return IntegrationCalendar(
        external_id=calendar_id or "No id",
        integration=INTEGRATION_NAME,
        name=calendar_data.get("summary") or "No name",
        primary=bool(calendar_data.get("primary", False)),
        read_only=calendar_data.get("accessRole") not in WRITABLE_ACCESS_ROLES,
        email=calendar_id or "",
        credential_id=credential_id,
    )


def build_watch_body(address: str, token: Optional[str] = None) -> Dict[str, Any]:
    """Request body for events.watch."""
    body = {
        "id": str(uuid.uuid4()),
        "type": WATCH_CHANNEL_TYPE,
        "address": address,
        "params": {"ttl": str(int(WATCH_CHANNEL_TTL.total_seconds()))},
    }
    if token:
        body["token"] = token
    return body


class GoogleFreeBusyClient:
    """
    Thin client over the Calendar v3 endpoints the availability service needs.

    Every HttpError is translated into the CalendarError family; nothing is
    retried here.
    """

    def __init__(self, service: "Resource", credential_id: Optional[int] = None):
        """
        Args:
            service: A Calendar v3 service built with googleapiclient.
            credential_id: Credential the service is authorized with.
        """
        self._service = service
        self._credential_id = credential_id

    def query_free_busy(self, args: FreeBusyArgs) -> Dict[str, Any]:
        """
        Calls freebusy.query for a window and set of calendars.

        Args:
            args: Window and calendar ids.

        Returns:
            The raw response dictionary.
        """
        sanitized = sanitize_for_logging(time_min=args.time_min, time_max=args.time_max, calendar_ids=args.items)
        logger.info("Querying free/busy time_min=%s, time_max=%s, calendars=%s",
                    sanitized['time_min'], sanitized['time_max'], sanitized['calendar_ids'])
        try:
            return self._service.freebusy().query(body=args.to_request_body()).execute()
        except HttpError as e:
            raise_for_http_error(e, "querying free/busy")

    def list_calendar_ids(self) -> List[str]:
        """Ids of every calendar in the user's calendar list."""
        try:
            result = self._service.calendarList().list(fields=CALENDAR_ID_FIELDS).execute()
        except HttpError as e:
            raise_for_http_error(e, "listing calendars")
        return [item["id"] for item in result.get("items") or [] if item.get("id")]

    def list_calendars(self) -> List[IntegrationCalendar]:
        """Every calendar in the user's calendar list."""
        try:
            result = self._service.calendarList().list(fields=CALENDAR_LIST_FIELDS).execute()
        except HttpError as e:
            raise_for_http_error(e, "listing calendars")
        calendars = [to_integration_calendar(item, self._credential_id) for item in result.get("items") or []]
        logger.info("Found %d calendars", len(calendars))
        return calendars

    def watch(self, calendar_id: str, address: str, token: Optional[str] = None) -> WatchChannel:
        """
        Opens a push notification channel for event changes on a calendar.

        Args:
            calendar_id: Calendar to watch.
            address: HTTPS endpoint Google will notify.
            token: Shared secret echoed back in X-Goog-Channel-Token.

        Returns:
            The created channel.
        """
        sanitized = sanitize_for_logging(calendar_id=calendar_id)
        logger.info("Watching calendar %s", sanitized['calendar_id'])
        try:
            result = self._service.events().watch(
                calendarId=calendar_id,
                body=build_watch_body(address, token)
            ).execute()
        except HttpError as e:
            raise_for_http_error(e, "watching calendar")
        channel = WatchChannel.from_metadata(result)
        if channel is None:
            raise CalendarError("Unexpected response when creating watch channel")
        return channel

    def stop_channel(self, channel: WatchChannel) -> None:
        """Stops a push notification channel."""
        logger.info("Stopping watch channel %s", channel.id)
        try:
            self._service.channels().stop(
                body={"id": channel.id, "resourceId": channel.resource_id}
            ).execute()
        except HttpError as e:
            raise_for_http_error(e, "stopping watch channel")
