"""
Domain models for free/busy calculations.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

import pendulum
from pendulum import DateTime
from pydantic import BaseModel, ConfigDict, Field, field_validator

# One leap year; longer requests cannot match any real calendar window
MAX_DURATION_MINUTES = 60 * 24 * 366


@dataclass(frozen=True)
class BusyInterval:
    """
    A period during which the calendar owner is unavailable.

    No ordering is enforced: zero-length intervals are valid, and an end
    before the start is tolerated by the scan rather than rejected.
    """
    start: datetime
    end: datetime

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.end - self.start).total_seconds() / 60)


@dataclass(frozen=True)
class SearchWindow:
    """Caller-supplied bounds of a free-slot search."""
    start: datetime
    end: datetime

    def is_inverted(self) -> bool:
        return self.end < self.start


@dataclass(frozen=True)
class FreeSlotResult:
    """
    Outcome of a free-slot search.

    Either both bounds are set (a slot of exactly the requested duration)
    or both are ``None`` (no availability in the window).
    """
    slot_start: Optional[datetime] = None
    slot_end: Optional[datetime] = None

    @classmethod
    def not_found(cls) -> "FreeSlotResult":
        return cls()

    @property
    def found(self) -> bool:
        return self.slot_start is not None

    def to_payload(self, time_zone: str) -> Dict[str, Any]:
        """
        Serialize the result the way the calendar tool returns it.

        Slot bounds are UTC ISO-8601 strings (or ``None``); the time zone is
        passed through untouched.
        """
        return {
            "slotStart": format_timestamp(self.slot_start) if self.found else None,
            "slotEnd": format_timestamp(self.slot_end) if self.found else None,
            "timeZone": time_zone,
        }


def parse_timestamp(value: str, timezone: str = "UTC") -> DateTime:
    """
    Parse an ISO-8601 timestamp into an aware pendulum DateTime.

    Strings without an offset are interpreted in ``timezone``.

    Raises:
        ValueError: If the string is empty or not a date/time
    """
    if not value or not value.strip():
        raise ValueError("Timestamp must not be empty")

    parsed = pendulum.parse(value.strip(), tz=timezone)

    if isinstance(parsed, DateTime):
        return parsed

    raise ValueError(f"Could not parse datetime: {value}")


def format_timestamp(value: datetime) -> str:
    """Render a datetime as a UTC ISO-8601 string."""
    return pendulum.instance(value).in_timezone("UTC").to_iso8601_string()


def validate_timezone(name: str) -> str:
    """Ensure ``name`` is a known IANA time zone."""
    try:
        pendulum.timezone(name)
    except ValueError as exc:
        raise ValueError(f"Unknown time zone: {name}") from exc
    return name


class FreeSlotRequest(BaseModel):
    """
    Validated input of a free-slot lookup.

    Field names follow the tool's JSON schema (``durationMinutes``,
    ``timeMin``, ``timeMax``, ``timeZone``).
    """
    model_config = ConfigDict(populate_by_name=True)

    duration_minutes: int = Field(
        alias="durationMinutes", ge=1, le=MAX_DURATION_MINUTES, strict=True
    )
    time_min: str = Field(alias="timeMin", min_length=1)
    time_max: str = Field(alias="timeMax", min_length=1)
    time_zone: str = Field(default="UTC", alias="timeZone")

    @field_validator("time_zone")
    @classmethod
    def validate_time_zone(cls, v: str) -> str:
        return validate_timezone(v)

    @field_validator("time_min", "time_max")
    @classmethod
    def validate_timestamp(cls, v: str) -> str:
        """Reject strings that are not ISO-8601 timestamps."""
        parse_timestamp(v)
        return v

    def window(self) -> SearchWindow:
        """Return the search window with naive bounds read in the request zone."""
        return SearchWindow(
            start=parse_timestamp(self.time_min, self.time_zone),
            end=parse_timestamp(self.time_max, self.time_zone),
        )
