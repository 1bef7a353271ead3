"""
Receiver for Google Calendar push notifications.

Google calls the channel address whenever events change on a watched
calendar; each call refreshes the cached availability of that calendar's
owner.
"""

import logging
from typing import Callable, List, Optional, Tuple

from flask import Flask, request

from .availability.types import IntegrationCalendar
from .services.calendar.api_service import CalendarAvailabilityService

logger = logging.getLogger(__name__)

ChannelResolver = Callable[[str], Optional[Tuple[CalendarAvailabilityService, List[IntegrationCalendar]]]]


def create_app(resolve_channel: ChannelResolver, channel_token: Optional[str] = None) -> Flask:
    """
    Build the webhook application.

    Args:
        resolve_channel: Maps a channel id to the availability service of the
            credential that opened it and the calendars to refresh, or None.
        channel_token: Expected X-Goog-Channel-Token. Checked when set.

    Returns:
        Flask application exposing POST /webhook
    """
    app = Flask(__name__)

    @app.route('/webhook', methods=['POST'])
    def calendar_webhook():
        if channel_token and request.headers.get('X-Goog-Channel-Token') != channel_token:
            logger.warning("Rejected notification with invalid channel token")
            return "Invalid channel token", 403

        channel_id = request.headers.get('X-Goog-Channel-ID')
        resource_state = request.headers.get('X-Goog-Resource-State')

        # Google sends "sync" once when a channel is created
        if resource_state == 'sync':
            return "ok", 200

        resolved = resolve_channel(channel_id) if channel_id else None
        if resolved is None:
            logger.info("Notification for unknown channel %s", channel_id)
            return "Unknown channel", 404

        service, selected_calendars = resolved
        service.fetch_availability_and_set_cache(selected_calendars)
        logger.info("Refreshed availability for channel %s (state=%s)", channel_id, resource_state)
        return "ok", 200

    return app
