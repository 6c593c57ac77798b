"""
Google Calendar API client for events and free/busy data.
"""

import logging
from typing import Any, Dict, List, Optional

from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from ..domain.exceptions import CalendarAPIError
from ..domain.models import BusyInterval, parse_timestamp

logger = logging.getLogger(__name__)


class GoogleCalendarClient:
    """
    Client for Google Calendar v3 operations on one calendar.

    Uses the freebusy.query endpoint to fetch busy intervals.
    """

    def __init__(self, credentials, calendar_id: str = "primary", service=None):
        """
        Initialize the Calendar API client.

        Args:
            credentials: Authorized google.oauth2 credentials
            calendar_id: Calendar to operate on
            service: Prebuilt API resource (tests inject a fake)
        """
        self.calendar_id = calendar_id
        self._service = service or build(
            "calendar", "v3", credentials=credentials, cache_discovery=False
        )

    def get_timezone(self) -> Optional[str]:
        """Return the account's time zone setting, or None when unavailable."""
        try:
            setting = self._service.settings().get(setting="timezone").execute()
        except HttpError as exc:
            logger.warning("Could not read calendar timezone setting: %s", exc)
            return None
        return setting.get("value") or None

    def list_events(
        self,
        time_min: str,
        time_max: str,
        max_results: int = 10,
        query: Optional[str] = None,
        timezone: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        List single events in a time window, ordered by start time.

        Raises:
            CalendarAPIError: If the API call fails
        """
        params: Dict[str, Any] = {
            "calendarId": self.calendar_id,
            "timeMin": time_min,
            "timeMax": time_max,
            "singleEvents": True,
            "orderBy": "startTime",
            "maxResults": max_results,
        }
        if query:
            params["q"] = query
        if timezone:
            params["timeZone"] = timezone

        try:
            response = self._service.events().list(**params).execute()
        except HttpError as exc:
            raise CalendarAPIError(f"Failed to list events: {exc}") from exc

        return response.get("items", [])

    def create_event(
        self,
        summary: str,
        start: str,
        end: str,
        timezone: str,
        attendees: Optional[List[str]] = None,
        location: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Insert an event and return the created resource.

        Raises:
            CalendarAPIError: If the API call fails
        """
        body: Dict[str, Any] = {
            "summary": summary,
            "start": {"dateTime": start, "timeZone": timezone},
            "end": {"dateTime": end, "timeZone": timezone},
            "attendees": [{"email": email} for email in attendees or []],
        }
        if location:
            body["location"] = location
        if description:
            body["description"] = description

        try:
            return self._service.events().insert(
                calendarId=self.calendar_id, body=body
            ).execute()
        except HttpError as exc:
            raise CalendarAPIError(f"Failed to create event: {exc}") from exc

    def get_busy(self, time_min: str, time_max: str, timezone: str) -> List[BusyInterval]:
        """
        Query free/busy for the calendar and return its busy intervals.

        Response format:
        {
            "calendars": {
                "primary": {
                    "busy": [{"start": "...", "end": "..."}]
                }
            }
        }

        Raises:
            CalendarAPIError: If the API call fails or a busy entry is malformed
        """
        body = {
            "timeMin": time_min,
            "timeMax": time_max,
            "timeZone": timezone,
            "items": [{"id": self.calendar_id}],
        }

        try:
            response = self._service.freebusy().query(body=body).execute()
        except HttpError as exc:
            raise CalendarAPIError(f"Free/busy query failed: {exc}") from exc

        return parse_busy_response(response, self.calendar_id, timezone)


def parse_busy_response(
    response: Dict[str, Any],
    calendar_id: str,
    timezone: str = "UTC",
) -> List[BusyInterval]:
    """
    Convert a freebusy.query response into BusyInterval objects.

    Raises:
        CalendarAPIError: If the calendar reports errors or an entry is malformed
    """
    calendar = response.get("calendars", {}).get(calendar_id, {})

    errors = calendar.get("errors") or []
    if errors:
        reasons = ", ".join(error.get("reason", "unknown") for error in errors)
        raise CalendarAPIError(f"Free/busy unavailable for {calendar_id}: {reasons}")

    intervals: List[BusyInterval] = []
    for item in calendar.get("busy", []):
        try:
            intervals.append(
                BusyInterval(
                    start=parse_timestamp(item["start"], timezone),
                    end=parse_timestamp(item["end"], timezone),
                )
            )
        except (KeyError, ValueError) as exc:
            raise CalendarAPIError(f"Malformed busy interval {item!r}: {exc}") from exc

    return intervals
