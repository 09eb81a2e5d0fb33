"""Cognitive load model: schedule shape to a 15-95 load score (higher is worse)."""

from __future__ import annotations

from collections.abc import Sequence

from ..calendar.models import CalendarEvent
from .schedule_metrics import clamp, count_back_to_back, round_half_up, total_duration_hours

BASELINE_IDLE_LOAD = 15
BASE_LOAD = 20
MIN_LOAD = 15
MAX_LOAD = 95

LARGE_MEETING_ATTENDEES = 8
LARGE_MEETING_PENALTY = 5

# (threshold, points), checked highest first
MEETING_COUNT_BANDS = ((8, 45), (6, 30), (4, 20), (0, 10))
BACK_TO_BACK_BANDS = ((4, 25), (2, 15), (1, 8))
DURATION_HOUR_BANDS = ((7, 20), (5, 12), (3, 6))


def _band_points(value: float, bands: tuple[tuple[float, int], ...]) -> int:
    for threshold, points in bands:
        if value >= threshold:
            return points
    return 0


def meeting_count_points(meeting_count: int) -> int:
    """+45 for 8+ meetings, +30 for 6+, +20 for 4+, else +10."""
    return _band_points(meeting_count, MEETING_COUNT_BANDS)


def back_to_back_points(back_to_back_count: int) -> int:
    """+25 for 4+ back-to-back pairs, +15 for 2+, +8 for 1."""
    return _band_points(back_to_back_count, BACK_TO_BACK_BANDS)


def duration_points(duration_hours: float) -> int:
    """+20 for 7h+ of meetings, +12 for 5h+, +6 for 3h+."""
    return _band_points(duration_hours, DURATION_HOUR_BANDS)


def compute_cognitive_load(events: Sequence[CalendarEvent]) -> int:
    """Compute the cognitive load score for a day.

    Args:
        events: Events sorted by start

    Returns:
        Integer load in [15, 95]; 15 for an empty day
    """
    if not events:
        return BASELINE_IDLE_LOAD

    load = BASE_LOAD
    load += meeting_count_points(len(events))
    load += back_to_back_points(count_back_to_back(events))
    load += duration_points(total_duration_hours(events))
    load += LARGE_MEETING_PENALTY * sum(
        1 for event in events if event.attendee_count >= LARGE_MEETING_ATTENDEES
    )

    return round_half_up(clamp(load, MIN_LOAD, MAX_LOAD))
