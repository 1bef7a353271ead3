from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..constants import INTEGRATION_NAME, WATCH_CHANNEL_KIND


@dataclass
class BusyInterval:
    """
    A block of time during which a calendar is occupied.
    Args:
        start: RFC 3339 start, or "" when the provider omitted it.
        end: RFC 3339 end, or "" when the provider omitted it.
    """
    start: str = ""
    end: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {"start": self.start, "end": self.end}


@dataclass
class FreeBusyArgs:
    """
    A free/busy request: a time window plus the calendars to inspect.
    Args:
        time_min: Lower bound of the window (RFC 3339 string).
        time_max: Upper bound of the window (RFC 3339 string).
        items: Calendar identifiers.
    """
    time_min: str
    time_max: str
    items: List[str] = field(default_factory=list)

    def to_request_body(self) -> Dict[str, Any]:
        """Body for the Calendar API freebusy.query call, in a fixed field order."""
        return {
            "timeMin": self.time_min,
            "timeMax": self.time_max,
            "items": [{"id": calendar_id} for calendar_id in self.items],
        }


@dataclass
class IntegrationCalendar:
    """
    A calendar a user connected through some calendar integration.
    Args:
        external_id: The provider's calendar id.
        integration: Integration name, e.g. "google_calendar".
        name: Display name.
        primary: Whether this is the account's primary calendar.
        read_only: Whether events can be written to it.
        email: Address associated with the calendar.
        credential_id: Credential the calendar was connected with.
    """
    external_id: str
    integration: str = INTEGRATION_NAME
    name: Optional[str] = None
    primary: bool = False
    read_only: bool = False
    email: Optional[str] = None
    credential_id: Optional[int] = None


@dataclass
class WatchChannel:
    """
    Metadata of a Google push notification channel.
    """
    id: str
    resource_id: str
    resource_uri: str
    expiration: str
    kind: str = WATCH_CHANNEL_KIND

    @classmethod
    def from_metadata(cls, metadata: Optional[Dict[str, Any]]) -> Optional["WatchChannel"]:
        """
        Builds a channel from stored metadata, or returns None when the metadata
        is missing or is not a complete api#channel record.
        """
        if not isinstance(metadata, dict) or metadata.get("kind") != WATCH_CHANNEL_KIND:
            return None
        fields = ("id", "resourceId", "resourceUri", "expiration")
        if not all(isinstance(metadata.get(name), str) for name in fields):
            return None
        return cls(
            id=metadata["id"],
            resource_id=metadata["resourceId"],
            resource_uri=metadata["resourceUri"],
            expiration=metadata["expiration"],
        )

    def to_dict(self) -> Dict[str, str]:
        return {
            "kind": self.kind,
            "id": self.id,
            "resourceId": self.resource_id,
            "resourceUri": self.resource_uri,
            "expiration": self.expiration,
        }
