"""
Application service for finding the next free meeting slot.

The service fetches busy intervals for a validated request via a calendar
client adapter and delegates the scan to the domain-level
``find_free_slot``. The calendar dependency is a simple protocol so tests can
swap in a stub.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Protocol

from ..domain.free_slot import find_free_slot
from ..domain.models import (
    BusyInterval,
    FreeSlotRequest,
    FreeSlotResult,
    SearchWindow,
    format_timestamp,
)

logger = logging.getLogger(__name__)


class BusyIntervalSource(Protocol):
    """Protocol describing the calendar client behaviour needed by the service."""

    def get_busy(self, time_min: str, time_max: str, timezone: str) -> List[BusyInterval]:
        """Return busy intervals overlapping the window."""


class FreeSlotService:
    """Orchestrates busy-time retrieval and the first-fit scan."""

    def __init__(self, calendar_client: BusyIntervalSource) -> None:
        self._calendar_client = calendar_client

    def find_free(self, request: FreeSlotRequest) -> Dict[str, Any]:
        """
        Return ``{"slotStart", "slotEnd", "timeZone"}`` for the request.

        ``slotStart``/``slotEnd`` are ``None`` when nothing fits.
        """
        window = request.window()
        busy = self._calendar_client.get_busy(
            time_min=format_timestamp(window.start),
            time_max=format_timestamp(window.end),
            timezone=request.time_zone,
        )

        result = self.calculate(busy, window, request.duration_minutes)
        logger.info(
            "Free slot search over %d busy interval(s): %s",
            len(busy),
            "found" if result.found else "none found",
        )
        return result.to_payload(request.time_zone)

    @staticmethod
    def calculate(
        busy: List[BusyInterval],
        window: SearchWindow,
        duration_minutes: int,
    ) -> FreeSlotResult:
        """
        Run the scan over the busy list ordered by start time.

        Providers are not guaranteed to return intervals in order.
        """
        ordered = sorted(busy, key=lambda interval: interval.start)
        return find_free_slot(ordered, window, duration_minutes)
