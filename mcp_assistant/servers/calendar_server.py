"""
Calendar tool server: events, event creation and free-slot lookup.
"""

import logging
from typing import Annotated, Any, Callable, Dict, List, Optional

from mcp.server.fastmcp import FastMCP
from pydantic import EmailStr, Field

from ..adapters.calendar_client import GoogleCalendarClient
from ..adapters.google_auth import GoogleAuthenticator
from ..config import AppConfig
from ..domain.models import MAX_DURATION_MINUTES, FreeSlotRequest
from ..services.free_slot_service import FreeSlotService

logger = logging.getLogger(__name__)


class CalendarTools:
    """
    Tool implementations bound to one calendar client.

    The client is created on first use so that authorization only happens
    when a calendar tool is actually called.
    """

    def __init__(
        self,
        config: AppConfig,
        client_factory: Optional[Callable[[], GoogleCalendarClient]] = None,
    ):
        self.config = config
        self.default_timezone = config.defaults.timezone
        self._client_factory = client_factory or self._build_client
        self._client: Optional[GoogleCalendarClient] = None

    def _build_client(self) -> GoogleCalendarClient:
        credentials = GoogleAuthenticator(self.config.google, "calendar").get_credentials()
        return GoogleCalendarClient(credentials)

    @property
    def client(self) -> GoogleCalendarClient:
        if self._client is None:
            self._client = self._client_factory()
        return self._client

    def calendar_profile(self) -> Dict[str, Any]:
        """Get primary calendar timezone"""
        return {"timezone": self.client.get_timezone() or self.default_timezone}

    def calendar_list_events(
        self,
        timeMin: Annotated[str, Field(min_length=1)],
        timeMax: Annotated[str, Field(min_length=1)],
        maxResults: Annotated[int, Field(ge=1, le=50)] = 10,
        q: Optional[str] = None,
        timeZone: Optional[str] = None,
    ) -> Dict[str, Any]:
        """List events in a time window (ISO times)"""
        items = self.client.list_events(
            time_min=timeMin,
            time_max=timeMax,
            max_results=maxResults,
            query=q,
            timezone=timeZone or self.default_timezone,
        )
        return {"items": items}

    def calendar_create_event(
        self,
        summary: str,
        start: str,
        end: str,
        attendees: Optional[List[EmailStr]] = None,
        location: Optional[str] = None,
        description: Optional[str] = None,
        timeZone: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Create an event on primary calendar"""
        created = self.client.create_event(
            summary=summary,
            start=start,
            end=end,
            timezone=timeZone or self.default_timezone,
            attendees=[str(email) for email in attendees or []],
            location=location,
            description=description,
        )
        logger.info("Created event %s", created.get("id"))
        return {"id": created.get("id"), "htmlLink": created.get("htmlLink")}

    def calendar_find_free(
        self,
        durationMinutes: Annotated[int, Field(ge=1, le=MAX_DURATION_MINUTES)],
        timeMin: str,
        timeMax: str,
        timeZone: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Find first free slot of given duration within a window"""
        request = FreeSlotRequest(
            durationMinutes=durationMinutes,
            timeMin=timeMin,
            timeMax=timeMax,
            timeZone=timeZone or self.default_timezone,
        )
        return FreeSlotService(self.client).find_free(request)


def create_server(config: AppConfig, tools: Optional[CalendarTools] = None) -> FastMCP:
    """Build the ``calendar-mcp`` server."""
    tools = tools or CalendarTools(config)
    server = FastMCP("calendar-mcp", instructions="Google Calendar tools")

    server.tool()(tools.calendar_profile)
    server.tool()(tools.calendar_list_events)
    server.tool()(tools.calendar_create_event)
    server.tool()(tools.calendar_find_free)

    return server
