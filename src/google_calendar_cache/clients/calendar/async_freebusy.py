import logging
from typing import Any, Dict, List, Optional

from aiogoogle.excs import HTTPError

from ...availability.types import FreeBusyArgs, IntegrationCalendar, WatchChannel
from ...constants import CALENDAR_ID_FIELDS, CALENDAR_LIST_FIELDS
from ...exceptions.calendar import CalendarError, CalendarNotFoundError, CalendarPermissionError
from ...utils.log_sanitizer import sanitize_for_logging
from .freebusy import build_watch_body, to_integration_calendar

logger = logging.getLogger(__name__)


def raise_for_async_http_error(e: HTTPError, action: str) -> None:
    """Translate an aiogoogle HTTPError into the matching CalendarError."""
    status = e.res.status_code if e.res is not None else None
    if status == 403:
        raise CalendarPermissionError(f"Permission denied {action}: {e}")
    elif status == 404:
        raise CalendarNotFoundError(f"Calendar not found {action}: {e}")
    else:
        raise CalendarError(f"Calendar API error {action}: {e}")


class AsyncGoogleFreeBusyClient:
    """
    Async version of GoogleFreeBusyClient built on aiogoogle.

    Usage:
        async with async_calendar_service(credentials) as (aiogoogle, calendar_v3):
            client = AsyncGoogleFreeBusyClient(aiogoogle, calendar_v3)
            response = await client.query_free_busy(args)
    """

    def __init__(self, aiogoogle: Any, calendar_service: Any, credential_id: Optional[int] = None):
        self._aiogoogle = aiogoogle
        self._calendar = calendar_service
        self._credential_id = credential_id

    async def _send(self, request: Any, action: str) -> Dict[str, Any]:
        try:
            return await self._aiogoogle.as_user(request)
        except HTTPError as e:
            raise_for_async_http_error(e, action)

    async def query_free_busy(self, args: FreeBusyArgs) -> Dict[str, Any]:
        sanitized = sanitize_for_logging(time_min=args.time_min, time_max=args.time_max, calendar_ids=args.items)
        logger.info("Async querying free/busy time_min=%s, time_max=%s, calendars=%s",
                    sanitized['time_min'], sanitized['time_max'], sanitized['calendar_ids'])
        return await self._send(
            self._calendar.freebusy.query(json=args.to_request_body()),
            "querying free/busy"
        )

    async def list_calendar_ids(self) -> List[str]:
        result = await self._send(
            self._calendar.calendarList.list(fields=CALENDAR_ID_FIELDS),
            "listing calendars"
        )
        return [item["id"] for item in result.get("items") or [] if item.get("id")]

    async def list_calendars(self) -> List[IntegrationCalendar]:
        result = await self._send(
            self._calendar.calendarList.list(fields=CALENDAR_LIST_FIELDS),
            "listing calendars"
        )
        return [to_integration_calendar(item, self._credential_id) for item in result.get("items") or []]

    async def watch(self, calendar_id: str, address: str, token: Optional[str] = None) -> WatchChannel:
        result = await self._send(
            self._calendar.events.watch(calendarId=calendar_id, json=build_watch_body(address, token)),
            "watching calendar"
        )
        channel = WatchChannel.from_metadata(result)
        if channel is None:
            raise CalendarError("Unexpected response when creating watch channel")
        return channel

    async def stop_channel(self, channel: WatchChannel) -> None:
        await self._send(
            self._calendar.channels.stop(json={"id": channel.id, "resourceId": channel.resource_id}),
            "stopping watch channel"
        )
