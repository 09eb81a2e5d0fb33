"""Adaptive performance index and the two secondary indices.

Each index is a weighted combination of banded schedule features, clamped
and rounded half-up to an integer. The band cutoffs differ per metric and
are kept separate on purpose.
"""

from __future__ import annotations

from collections.abc import Sequence

from ..calendar.models import CalendarEvent
from .models import PerformanceStatus, ResilienceLevel, SustainabilityLevel
from .schedule_metrics import clamp, gap_minutes, round_half_up, total_duration_hours

# Adaptive performance index
COGNITIVE_WEIGHT = 0.5
FRAGMENTATION_WEIGHT = 0.3
DENSITY_WEIGHT = 0.2
MIN_INDEX = 10
MAX_INDEX = 100

# (max meetings, density score); anything above the last row scores 25
DENSITY_BANDS = ((3, 80), (5, 65), (7, 45))
HIGH_DENSITY_SCORE = 25

# (min index, status), checked highest first
STATUS_BANDS = (
    (85, PerformanceStatus.EXCELLENT),
    (70, PerformanceStatus.GOOD),
    (55, PerformanceStatus.MODERATE),
)

# Cognitive resilience
EMPTY_DAY_RESILIENCE = 90
AFTERNOON_HOUR = 14
LARGE_GROUP_ATTENDEES = 5
CONSECUTIVE_MAX_GAP_MINUTES = 30
RESILIENCE_CRITICAL_MAX = 40
RESILIENCE_MODERATE_MAX = 65

# Work rhythm recovery (sustainability)
EMPTY_DAY_SUSTAINABILITY = 98
SUSTAINABILITY_UNSUSTAINABLE_MAX = 45
SUSTAINABILITY_ADEQUATE_MAX = 70


def density_score(meeting_count: int) -> int:
    """80 for up to 3 meetings, 65 up to 5, 45 up to 7, else 25."""
    for max_meetings, score in DENSITY_BANDS:
        if meeting_count <= max_meetings:
            return score
    return HIGH_DENSITY_SCORE


def compute_performance_index(
    cognitive_load: int, fragmentation_score: int, meeting_count: int
) -> int:
    """Combine load, fragmentation and density into the performance index.

    Args:
        cognitive_load: Load score (higher is worse)
        fragmentation_score: Fragmentation score (higher is better)
        meeting_count: Number of meetings in the day

    Returns:
        Integer index in [10, 100]
    """
    cognitive_score = 100 - cognitive_load
    index = (
        cognitive_score * COGNITIVE_WEIGHT
        + fragmentation_score * FRAGMENTATION_WEIGHT
        + density_score(meeting_count) * DENSITY_WEIGHT
    )
    return round_half_up(clamp(index, MIN_INDEX, MAX_INDEX))


def performance_status(index: int) -> PerformanceStatus:
    """Map an index to its status label."""
    for minimum, status in STATUS_BANDS:
        if index >= minimum:
            return status
    return PerformanceStatus.NEEDS_ATTENTION


def _first_word(summary: str) -> str:
    words = summary.lower().split()
    return words[0] if words else ""


def longest_consecutive_stretch(events: Sequence[CalendarEvent]) -> int:
    """Length of the longest run of meetings separated by 30 minutes or less."""
    if not events:
        return 0

    longest = current = 1
    for gap in gap_minutes(events):
        if gap <= CONSECUTIVE_MAX_GAP_MINUTES:
            current += 1
            longest = max(longest, current)
        else:
            current = 1
    return longest


def cognitive_reserve(focus_minutes: float) -> int:
    """Reserve points from focus hours: 4h->80, 3h->60, 2h->40, 1h->20, else 10."""
    hours = focus_minutes / 60
    if hours >= 4:
        return 80
    if hours >= 3:
        return 60
    if hours >= 2:
        return 40
    if hours >= 1:
        return 20
    return 10


def compute_cognitive_resilience(events: Sequence[CalendarEvent], focus_minutes: float) -> int:
    """Estimate tolerance to context switching and decision fatigue.

    ``100 - switching*0.25 - fatigue*0.35 + reserve*0.25 - depletion*0.15`` where

    - switching: 15 per distinct leading title word, capped at 100
    - fatigue: 10 per meeting, x1.5 from 14:00, x1.3 above 5 attendees, capped at 80
    - reserve: banded focus hours
    - depletion: 20 per meeting in the longest consecutive stretch, capped at 60

    Args:
        events: Events sorted by start
        focus_minutes: Focus time for the day

    Returns:
        Integer score in [0, 100]; 90 for an empty day
    """
    if not events:
        return EMPTY_DAY_RESILIENCE

    contexts = {_first_word(event.summary) for event in events}
    context_switching = min(100, len(contexts) * 15)

    fatigue = 0.0
    for event in events:
        time_factor = 1.5 if event.start.hour >= AFTERNOON_HOUR else 1.0
        attendee_factor = 1.3 if event.attendee_count > LARGE_GROUP_ATTENDEES else 1.0
        fatigue += 10 * time_factor * attendee_factor
    decision_fatigue = min(80.0, fatigue)

    energy_depletion = min(60, longest_consecutive_stretch(events) * 20)

    score = (
        100
        - context_switching * 0.25
        - decision_fatigue * 0.35
        + cognitive_reserve(focus_minutes) * 0.25
        - energy_depletion * 0.15
    )
    return round_half_up(clamp(score, 0, 100))


def resilience_level(score: int) -> ResilienceLevel:
    """<=40 critical, 40-65 moderate, >65 strong."""
    if score <= RESILIENCE_CRITICAL_MAX:
        return ResilienceLevel.CRITICAL
    if score <= RESILIENCE_MODERATE_MAX:
        return ResilienceLevel.MODERATE
    return ResilienceLevel.STRONG


def _intensity_score(meeting_hours: float) -> int:
    if meeting_hours > 7:
        return 20
    if meeting_hours > 6:
        return 40
    if meeting_hours > 5:
        return 60
    if meeting_hours > 4:
        return 80
    return 95


def compute_work_rhythm_recovery(events: Sequence[CalendarEvent]) -> int:
    """Estimate how sustainable the day's pace is.

    ``rhythm*0.25 + recovery*0.35 + intensity*0.25 + alignment*0.15`` where

    - rhythm: 100 - 15 per meeting of imbalance between morning (9-12) and
      afternoon (12-17) starts, floored at 40
    - recovery: 20 per positive gap of 30+ minutes, 10 per gap of 15-30, capped at 100
    - intensity: banded total meeting hours
    - alignment: 100 - 20 per start before 9:00 - 15 per start from 16:00, floored at 30

    Args:
        events: Events sorted by start

    Returns:
        Integer score in [0, 100]; 98 for an empty day
    """
    if not events:
        return EMPTY_DAY_SUSTAINABILITY

    start_hours = [event.start.hour for event in events]

    morning = sum(1 for hour in start_hours if 9 <= hour < 12)
    afternoon = sum(1 for hour in start_hours if 12 <= hour < 17)
    rhythm = max(40, 100 - abs(morning - afternoon) * 15)

    positive_gaps = [gap for gap in gap_minutes(events) if gap > 0]
    adequate_breaks = sum(1 for gap in positive_gaps if gap >= 30)
    short_breaks = sum(1 for gap in positive_gaps if 15 <= gap < 30)
    recovery = min(100, adequate_breaks * 20 + short_breaks * 10)

    intensity = _intensity_score(total_duration_hours(events))

    early = sum(1 for hour in start_hours if hour < 9)
    late = sum(1 for hour in start_hours if hour >= 16)
    alignment = max(30, 100 - early * 20 - late * 15)

    combined = rhythm * 0.25 + recovery * 0.35 + intensity * 0.25 + alignment * 0.15
    return round_half_up(clamp(combined, 0, 100))


def sustainability_level(score: int) -> SustainabilityLevel:
    """<=45 unsustainable, 45-70 adequate, >70 excellent."""
    if score <= SUSTAINABILITY_UNSUSTAINABLE_MAX:
        return SustainabilityLevel.UNSUSTAINABLE
    if score <= SUSTAINABILITY_ADEQUATE_MAX:
        return SustainabilityLevel.ADEQUATE
    return SustainabilityLevel.EXCELLENT
