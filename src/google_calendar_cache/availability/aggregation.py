from typing import Any, Dict, List, Optional

from ..exceptions.calendar import MalformedResponseError
from .types import BusyInterval


def aggregate_busy_times(response: Optional[Dict[str, Any]]) -> List[BusyInterval]:
    """
    Flattens a freebusy.query response into one list of busy intervals.

    Missing bounds become empty strings; downstream consumers read "" as
    unspecified.

    Args:
        response: The API response, shaped {"calendars": {id: {"busy": [...]}}}.

    Returns:
        Busy intervals of every calendar. Order carries no meaning.

    Raises:
        MalformedResponseError: If the response has no calendars field.
    """
    if not response or response.get("calendars") is None:
        raise MalformedResponseError("No response from google calendar")

    busy_times = []
    for calendar in response["calendars"].values():
        for busy_time in calendar.get("busy") or []:
            busy_times.append(BusyInterval(
                start=busy_time.get("start") or "",
                end=busy_time.get("end") or "",
            ))
    return busy_times
