"""
First-fit search for the next available meeting slot.

Pure domain logic: no API calls, no I/O, no shared state. Safe to call from
any number of callers at once; identical inputs always give identical results.
"""

from datetime import timedelta
from typing import Iterable

from .models import BusyInterval, FreeSlotResult, SearchWindow


def find_free_slot(
    busy: Iterable[BusyInterval],
    window: SearchWindow,
    duration_minutes: int,
) -> FreeSlotResult:
    """
    Return the earliest gap of ``duration_minutes`` inside ``window``.

    Algorithm (single forward pass over ``busy``):
    1. Start a cursor at the window start
    2. For each busy interval, if the gap between the cursor and the
       interval start (clamped to the window end) fits the duration,
       that gap wins - first-fit, not best-fit
    3. Otherwise advance the cursor to the interval end, never backward
    4. After the last interval, try the tail of the window

    Busy intervals are expected in ascending start order. Overlapping or
    out-of-order intervals never raise: the cursor only moves forward, so an
    overlap is absorbed. An inverted or too-short window yields "not found".

    Args:
        busy: Busy intervals, ideally sorted by start
        window: Search bounds
        duration_minutes: Requested slot length (validated by the caller)

    Returns:
        FreeSlotResult with both bounds set, or the "not found" result
    """
    if window.is_inverted():
        return FreeSlotResult.not_found()

    # Also keeps timedelta() from overflowing on absurd durations
    if duration_minutes * 60 > (window.end - window.start).total_seconds():
        return FreeSlotResult.not_found()

    duration = timedelta(minutes=duration_minutes)
    cursor = window.start

    for interval in busy:
        gap_end = min(interval.start, window.end)
        if gap_end - cursor >= duration:
            return FreeSlotResult(slot_start=cursor, slot_end=cursor + duration)

        cursor = max(cursor, interval.end)

    if window.end - cursor >= duration:
        return FreeSlotResult(slot_start=cursor, slot_end=cursor + duration)

    return FreeSlotResult.not_found()
