"""Schedule shape metrics: back-to-back meetings, focus time, buffer, fragmentation.

All functions are pure over a NormalizedSchedule. Times of day (the 9:00 to
17:00 work window) are evaluated in the schedule's own timezone.
"""

from __future__ import annotations

import datetime
import logging
import math
from collections.abc import Sequence

from ..calendar.models import CalendarEvent, NormalizedSchedule
from .models import ScheduleMetrics

logger = logging.getLogger(__name__)

WORK_START_HOUR = 9
WORK_END_HOUR = 17
WORKDAY_MINUTES = (WORK_END_HOUR - WORK_START_HOUR) * 60  # 480

BACK_TO_BACK_MAX_GAP_MINUTES = 15
FOCUS_BLOCK_MINUTES = 90
PARTIAL_FOCUS_GAP_MINUTES = 30
TRANSITION_MINUTES_PER_MEETING = 15

EMPTY_DAY_FRAGMENTATION = 100
SINGLE_MEETING_FRAGMENTATION = 85


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def clamp(value: float, low: float, high: float) -> float:
    """Clamp ``value`` into ``[low, high]``."""
    return max(low, min(high, value))


def gap_minutes(events: Sequence[CalendarEvent]) -> list[float]:
    """Return the gap between each adjacent pair of events, in minutes.

    Overlapping events produce negative gaps.
    """
    return [
        (events[i + 1].start - events[i].end).total_seconds() / 60
        for i in range(len(events) - 1)
    ]


def count_back_to_back(events: Sequence[CalendarEvent]) -> int:
    """Count adjacent pairs separated by 0 to 15 minutes inclusive."""
    return sum(1 for gap in gap_minutes(events) if 0 <= gap <= BACK_TO_BACK_MAX_GAP_MINUTES)


def total_duration_hours(events: Sequence[CalendarEvent]) -> float:
    """Sum of meeting durations in hours."""
    return sum(event.duration_minutes for event in events) / 60


def _at_hour(reference: datetime.datetime, hour: int) -> datetime.datetime:
    return reference.replace(hour=hour, minute=0, second=0, microsecond=0)


def compute_focus_time(events: Sequence[CalendarEvent]) -> float:
    """Minutes of uninterrupted blocks of at least 90 minutes in the work window.

    Counts the morning block (9:00 to first start), every gap between
    meetings, and the evening block (last end to 17:00). Negative gaps
    contribute nothing. An empty day is a full 480-minute workday, and the
    total never exceeds the workday.

    Args:
        events: Events sorted by start

    Returns:
        Focus minutes (unrounded)
    """
    if not events:
        return float(WORKDAY_MINUTES)

    focus = 0.0

    first = events[0]
    work_start = _at_hour(first.start, WORK_START_HOUR)
    if first.start > work_start:
        morning = (first.start - work_start).total_seconds() / 60
        if morning >= FOCUS_BLOCK_MINUTES:
            focus += morning

    for gap in gap_minutes(events):
        if gap >= FOCUS_BLOCK_MINUTES:
            focus += gap

    last = events[-1]
    work_end = _at_hour(last.end, WORK_END_HOUR)
    if last.end < work_end:
        evening = (work_end - last.end).total_seconds() / 60
        if evening >= FOCUS_BLOCK_MINUTES:
            focus += evening

    return min(focus, float(WORKDAY_MINUTES))


def compute_buffer_time(duration_hours: float, meeting_count: int) -> float:
    """Workday minutes left after meetings and a 15-minute transition per meeting."""
    return max(
        0.0,
        WORKDAY_MINUTES - duration_hours * 60 - meeting_count * TRANSITION_MINUTES_PER_MEETING,
    )


def compute_fragmentation_score(events: Sequence[CalendarEvent], focus_minutes: float) -> int:
    """Score 0-100 for how well the day keeps contiguous focus blocks.

    Higher is better. ``(focus / 480) * 60`` plus a gap-quality bonus
    (1 point per gap >= 90 minutes, 0.5 per gap in [30, 90), averaged over
    the meeting count and scaled to 40), minus a density penalty of 20 for
    eight or more meetings or 10 for six or more.

    Args:
        events: Events sorted by start
        focus_minutes: Result of ``compute_focus_time``

    Returns:
        Integer score in [0, 100]
    """
    count = len(events)
    if count == 0:
        return EMPTY_DAY_FRAGMENTATION
    if count == 1:
        return SINGLE_MEETING_FRAGMENTATION

    score = (focus_minutes / WORKDAY_MINUTES) * 60

    quality_points = 0.0
    for gap in gap_minutes(events):
        if gap >= FOCUS_BLOCK_MINUTES:
            quality_points += 1.0
        elif gap >= PARTIAL_FOCUS_GAP_MINUTES:
            quality_points += 0.5
    score += (quality_points / count) * 40

    if count >= 8:
        score -= 20
    elif count >= 6:
        score -= 10

    return round_half_up(clamp(score, 0, 100))


def compute_schedule_metrics(schedule: NormalizedSchedule) -> ScheduleMetrics:
    """Compute all schedule shape metrics for one day.

    Args:
        schedule: Normalized, sorted events

    Returns:
        ScheduleMetrics
    """
    events = schedule.events
    duration_hours = total_duration_hours(events)
    focus = round_half_up(compute_focus_time(events))

    metrics = ScheduleMetrics(
        meeting_count=len(events),
        back_to_back_count=count_back_to_back(events),
        total_duration_hours=round(duration_hours, 2),
        focus_time_minutes=focus,
        buffer_time_minutes=round_half_up(compute_buffer_time(duration_hours, len(events))),
        fragmentation_score=compute_fragmentation_score(events, focus),
    )

    logger.debug(
        "Schedule metrics: meetings=%d b2b=%d hours=%.2f focus=%d buffer=%d frag=%d",
        metrics.meeting_count,
        metrics.back_to_back_count,
        metrics.total_duration_hours,
        metrics.focus_time_minutes,
        metrics.buffer_time_minutes,
        metrics.fragmentation_score,
    )
    return metrics
