"""
Tests for the Google Calendar client adapter.
"""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pendulum
import pytest
from googleapiclient.errors import HttpError

from mcp_assistant.adapters.calendar_client import GoogleCalendarClient, parse_busy_response
from mcp_assistant.domain.exceptions import CalendarAPIError


def _http_error(status: int = 500) -> HttpError:
    return HttpError(SimpleNamespace(status=status, reason="Server Error"), b"")


class TestParseBusyResponse:
    """Tests for free/busy response parsing."""

    def test_parses_intervals(self):
        response = {
            "calendars": {
                "primary": {
                    "busy": [
                        {"start": "2025-10-25T09:00:00Z", "end": "2025-10-25T10:00:00Z"},
                        {"start": "2025-10-25T13:00:00+02:00", "end": "2025-10-25T14:00:00+02:00"},
                    ]
                }
            }
        }

        intervals = parse_busy_response(response, "primary")

        assert [i.start for i in intervals] == [
            pendulum.parse("2025-10-25T09:00:00Z"),
            pendulum.parse("2025-10-25T11:00:00Z"),
        ]
        assert intervals[0].duration_minutes() == 60

    def test_missing_calendar_is_empty(self):
        assert parse_busy_response({}, "primary") == []

    def test_calendar_errors_raise(self):
        response = {"calendars": {"primary": {"errors": [{"reason": "notFound"}]}}}
        with pytest.raises(CalendarAPIError, match="notFound"):
            parse_busy_response(response, "primary")

    def test_malformed_entry_raises(self):
        response = {"calendars": {"primary": {"busy": [{"start": "2025-10-25T09:00:00Z"}]}}}
        with pytest.raises(CalendarAPIError, match="Malformed busy interval"):
            parse_busy_response(response, "primary")


class TestGoogleCalendarClient:
    """Tests for GoogleCalendarClient against a fake API resource."""

    def test_get_busy_queries_freebusy(self):
        service = MagicMock()
        service.freebusy.return_value.query.return_value.execute.return_value = {
            "calendars": {"primary": {"busy": [{"start": "2025-10-25T09:00:00Z", "end": "2025-10-25T09:30:00Z"}]}}
        }
        client = GoogleCalendarClient(credentials=None, service=service)

        intervals = client.get_busy("2025-10-25T08:00:00Z", "2025-10-25T18:00:00Z", "Europe/Berlin")

        service.freebusy.return_value.query.assert_called_once_with(body={
            "timeMin": "2025-10-25T08:00:00Z",
            "timeMax": "2025-10-25T18:00:00Z",
            "timeZone": "Europe/Berlin",
            "items": [{"id": "primary"}],
        })
        assert len(intervals) == 1

    def test_get_busy_wraps_http_errors(self):
        service = MagicMock()
        service.freebusy.return_value.query.return_value.execute.side_effect = _http_error()
        client = GoogleCalendarClient(credentials=None, service=service)

        with pytest.raises(CalendarAPIError, match="Free/busy query failed"):
            client.get_busy("2025-10-25T08:00:00Z", "2025-10-25T18:00:00Z", "UTC")

    def test_list_events_parameters(self):
        service = MagicMock()
        service.events.return_value.list.return_value.execute.return_value = {"items": [{"id": "e1"}]}
        client = GoogleCalendarClient(credentials=None, service=service)

        items = client.list_events("a", "b", max_results=3, query="standup", timezone="UTC")

        assert items == [{"id": "e1"}]
        service.events.return_value.list.assert_called_once_with(
            calendarId="primary",
            timeMin="a",
            timeMax="b",
            singleEvents=True,
            orderBy="startTime",
            maxResults=3,
            q="standup",
            timeZone="UTC",
        )

    def test_create_event_body(self):
        service = MagicMock()
        service.events.return_value.insert.return_value.execute.return_value = {"id": "e1", "htmlLink": "link"}
        client = GoogleCalendarClient(credentials=None, service=service)

        created = client.create_event(
            summary="Sync",
            start="2025-10-25T09:00:00",
            end="2025-10-25T09:30:00",
            timezone="Europe/Berlin",
            attendees=["a@example.com"],
        )

        assert created["id"] == "e1"
        _, kwargs = service.events.return_value.insert.call_args
        assert kwargs["body"] == {
            "summary": "Sync",
            "start": {"dateTime": "2025-10-25T09:00:00", "timeZone": "Europe/Berlin"},
            "end": {"dateTime": "2025-10-25T09:30:00", "timeZone": "Europe/Berlin"},
            "attendees": [{"email": "a@example.com"}],
        }

    def test_get_timezone_falls_back_to_none(self):
        service = MagicMock()
        service.settings.return_value.get.return_value.execute.side_effect = _http_error(403)
        client = GoogleCalendarClient(credentials=None, service=service)

        assert client.get_timezone() is None
