"""
Tests for the first-fit free slot scan.
"""

import random
from datetime import timedelta
from typing import List, Optional, Tuple

import pendulum

from mcp_assistant.domain.free_slot import find_free_slot
from mcp_assistant.domain.models import BusyInterval, FreeSlotResult, SearchWindow

BASE = pendulum.datetime(2025, 10, 25, 9, 0, tz="UTC")


def at(minutes: int):
    return BASE + timedelta(minutes=minutes)


def busy(*spans: Tuple[int, int]) -> List[BusyInterval]:
    return [BusyInterval(start=at(start), end=at(end)) for start, end in spans]


def window(start: int, end: int) -> SearchWindow:
    return SearchWindow(start=at(start), end=at(end))


def slot(start: int, end: int) -> FreeSlotResult:
    return FreeSlotResult(slot_start=at(start), slot_end=at(end))


def earliest_valid_start(spans: List[Tuple[int, int]], start: int, end: int, duration: int) -> Optional[int]:
    """Brute-force the earliest slot start that avoids every busy span."""
    candidates = sorted({start} | {span_end for _, span_end in spans if span_end >= start})
    for candidate in candidates:
        if candidate + duration > end:
            continue
        if any(s < candidate + duration and candidate < e for s, e in spans):
            continue
        return candidate
    return None


class TestFindFreeSlot:
    """Tests for find_free_slot."""

    def test_fits_before_busy_interval(self):
        result = find_free_slot(busy((60, 90)), window(0, 120), 30)
        assert result == slot(0, 30)

    def test_fits_after_busy_interval(self):
        result = find_free_slot(busy((0, 90)), window(0, 120), 30)
        assert result == slot(90, 120)

    def test_not_found_when_remaining_gap_too_short(self):
        result = find_free_slot(busy((0, 100)), window(0, 120), 30)
        assert result == FreeSlotResult.not_found()
        assert not result.found
        assert result.slot_end is None

    def test_overlapping_intervals_are_absorbed(self):
        """Cursor advances to the furthest end, never into [10, 25]."""
        result = find_free_slot(busy((10, 20), (15, 25)), window(0, 30), 5)
        # First gap [0, 10] already fits five minutes
        assert result == slot(0, 5)

        result = find_free_slot(busy((10, 20), (15, 25)), window(10, 30), 5)
        assert result == slot(25, 30)

        result = find_free_slot(busy((0, 20), (15, 25)), window(0, 30), 5)
        assert result == slot(25, 30)

    def test_nested_interval_does_not_move_cursor_back(self):
        result = find_free_slot(busy((0, 60), (10, 20)), window(0, 90), 25)
        assert result == slot(60, 85)

    def test_first_fit_not_best_fit(self):
        """The earliest sufficient gap wins over a tighter later one."""
        result = find_free_slot(busy((45, 60), (90, 120)), window(0, 120), 30)
        assert result == slot(0, 30)

    def test_gap_exactly_duration(self):
        result = find_free_slot(busy((0, 30), (60, 90)), window(0, 90), 30)
        assert result == slot(30, 60)

    def test_zero_length_interval_adds_no_delay(self):
        result = find_free_slot(busy((0, 0)), window(0, 60), 30)
        assert result == slot(0, 30)

    def test_empty_busy_list(self):
        assert find_free_slot([], window(0, 30), 30) == slot(0, 30)
        assert find_free_slot([], window(0, 29), 30) == FreeSlotResult.not_found()

    def test_busy_outside_window_behaves_like_empty(self):
        outside = busy((-120, -60), (200, 260))
        assert find_free_slot(outside, window(0, 120), 45) == find_free_slot([], window(0, 120), 45)

        # Only after the window end: a gap reaching past the end must not be used
        assert find_free_slot(busy((200, 260)), window(0, 20), 30) == FreeSlotResult.not_found()

    def test_inverted_window_is_not_found(self):
        assert find_free_slot([], window(60, 0), 1) == FreeSlotResult.not_found()
        assert find_free_slot(busy((10, 20)), window(60, 0), 1) == FreeSlotResult.not_found()

    def test_empty_window_is_not_found(self):
        assert find_free_slot([], window(30, 30), 1) == FreeSlotResult.not_found()

    def test_huge_duration_is_not_found(self):
        assert find_free_slot([], window(0, 120), 10**13) == FreeSlotResult.not_found()
        assert find_free_slot(busy((10, 20)), window(0, 120), 10**13) == FreeSlotResult.not_found()

    def test_unsorted_input_does_not_raise(self):
        result = find_free_slot(busy((60, 90), (0, 30)), window(0, 120), 30)
        assert result.found
        assert result.slot_start >= at(0)
        assert result.slot_end <= at(120)

    def test_idempotent(self):
        intervals = busy((10, 40), (50, 70))
        first = find_free_slot(intervals, window(0, 120), 20)
        second = find_free_slot(intervals, window(0, 120), 20)
        assert first == second == slot(70, 90)

    def test_accepts_generator(self):
        result = find_free_slot((i for i in busy((0, 30))), window(0, 60), 30)
        assert result == slot(30, 60)

    def test_slot_length_equals_duration(self):
        result = find_free_slot(busy((0, 15)), window(0, 600), 90)
        assert result.slot_end - result.slot_start == timedelta(minutes=90)


class TestFindFreeSlotProperties:
    """Randomized checks against a brute-force search."""

    def _random_case(self, rng: random.Random):
        start = rng.randint(0, 60)
        end = start + rng.randint(-30, 480)
        spans = []
        for _ in range(rng.randint(0, 8)):
            span_start = rng.randint(-60, 560)
            spans.append((span_start, span_start + rng.randint(0, 120)))
        duration = rng.randint(1, 120)
        return spans, start, end, duration

    def test_matches_brute_force_on_sorted_input(self):
        rng = random.Random(20251025)
        for _ in range(500):
            spans, start, end, duration = self._random_case(rng)
            spans.sort()

            result = find_free_slot(busy(*spans), window(start, end), duration)
            expected = earliest_valid_start(spans, start, end, duration)

            if expected is None:
                assert not result.found, (spans, start, end, duration)
            else:
                assert result == slot(expected, expected + duration), (spans, start, end, duration)

    def test_result_stays_inside_window_for_any_order(self):
        rng = random.Random(7)
        for _ in range(500):
            spans, start, end, duration = self._random_case(rng)
            rng.shuffle(spans)

            result = find_free_slot(busy(*spans), window(start, end), duration)

            if result.found:
                assert result.slot_start >= at(start)
                assert result.slot_end <= at(end)
                assert result.slot_end - result.slot_start == timedelta(minutes=duration)
            else:
                assert result.slot_start is None and result.slot_end is None
