"""Assemble the per-day WorkHealthMetrics from a normalized schedule."""

from __future__ import annotations

import logging

from ..calendar.models import NormalizedSchedule
from .cognitive_load import compute_cognitive_load
from .models import MetricsBreakdown, ScheduleMetrics, WorkHealthMetrics
from .performance_index import (
    compute_cognitive_resilience,
    compute_performance_index,
    compute_work_rhythm_recovery,
    performance_status,
    resilience_level,
    sustainability_level,
)
from .schedule_metrics import compute_schedule_metrics

logger = logging.getLogger(__name__)

# Contributor tiers. Meeting load follows the cognitive-load count bands
# (4 and 6 meetings); focus time uses multiples of the 90-minute block.
MEETING_LOAD_MODERATE = 4
MEETING_LOAD_HEAVY = 6
FOCUS_MODERATE_MINUTES = 90
FOCUS_STRONG_MINUTES = 180
COGNITIVE_LOAD_MODERATE = 40
COGNITIVE_LOAD_HEAVY = 70

OPTIMAL_MAX_MEETINGS = 3
OPTIMAL_MIN_FRAGMENTATION = 80
BACK_TO_BACK_WARNING = 2


def _meeting_load_tier(meeting_count: int) -> str:
    if meeting_count >= MEETING_LOAD_HEAVY:
        return "Heavy"
    if meeting_count >= MEETING_LOAD_MODERATE:
        return "Moderate"
    return "Light"


def _focus_tier(focus_minutes: int) -> str:
    if focus_minutes >= FOCUS_STRONG_MINUTES:
        return "Strong"
    if focus_minutes >= FOCUS_MODERATE_MINUTES:
        return "Moderate"
    return "Limited"


def _cognitive_load_tier(cognitive_load: int) -> str:
    if cognitive_load >= COGNITIVE_LOAD_HEAVY:
        return "Heavy"
    if cognitive_load >= COGNITIVE_LOAD_MODERATE:
        return "Moderate"
    return "Light"


def build_contributors(
    schedule: ScheduleMetrics,
    cognitive_load: int,
    cognitive_resilience: int,
    work_rhythm_recovery: int,
) -> list[str]:
    """Ordered one-line summaries of each metric with its qualitative tier."""
    plural = "" if schedule.meeting_count == 1 else "s"
    return [
        f"Meeting load: {schedule.meeting_count} meeting{plural} "
        f"({_meeting_load_tier(schedule.meeting_count)})",
        f"Focus time: {schedule.focus_time_minutes} minutes "
        f"({_focus_tier(schedule.focus_time_minutes)})",
        f"Cognitive load: {cognitive_load}/100 ({_cognitive_load_tier(cognitive_load)})",
        f"Cognitive resilience: {cognitive_resilience}/100 "
        f"({resilience_level(cognitive_resilience).value.title()})",
        f"Sustainability: {work_rhythm_recovery}/100 "
        f"({sustainability_level(work_rhythm_recovery).value.title()})",
    ]


def build_primary_factors(schedule: ScheduleMetrics, cognitive_load: int) -> list[str]:
    """Causal explanations chosen by priority, plus a back-to-back warning."""
    factors: list[str] = []

    if (
        schedule.meeting_count <= OPTIMAL_MAX_MEETINGS
        and schedule.fragmentation_score >= OPTIMAL_MIN_FRAGMENTATION
    ):
        factors.append(
            "Optimal conditions: light meeting load with well-preserved focus blocks"
        )
    elif cognitive_load >= COGNITIVE_LOAD_HEAVY:
        factors.append("High cognitive demand from meeting volume and density")
    else:
        factors.append("Moderate workload with manageable cognitive demands")

    if schedule.back_to_back_count >= BACK_TO_BACK_WARNING:
        factors.append(
            f"{schedule.back_to_back_count} back-to-back meetings leave little "
            "time for transitions"
        )

    return factors


def assemble_work_health(schedule: NormalizedSchedule) -> WorkHealthMetrics:
    """Run every scoring model over a schedule and package the result.

    Args:
        schedule: Normalized events for one day

    Returns:
        Frozen WorkHealthMetrics
    """
    schedule_metrics = compute_schedule_metrics(schedule)
    events = schedule.events

    cognitive_load = compute_cognitive_load(events)
    performance_index = compute_performance_index(
        cognitive_load, schedule_metrics.fragmentation_score, schedule_metrics.meeting_count
    )
    resilience = compute_cognitive_resilience(events, schedule_metrics.focus_time_minutes)
    rhythm_recovery = compute_work_rhythm_recovery(events)
    status = performance_status(performance_index)

    metrics = WorkHealthMetrics(
        cognitive_load=cognitive_load,
        adaptive_performance_index=performance_index,
        readiness=performance_index,
        cognitive_resilience=resilience,
        work_rhythm_recovery=rhythm_recovery,
        status=status,
        schedule=schedule_metrics,
        breakdown=MetricsBreakdown(
            source="calendar",
            contributors=build_contributors(
                schedule_metrics, cognitive_load, resilience, rhythm_recovery
            ),
            primary_factors=build_primary_factors(schedule_metrics, cognitive_load),
        ),
    )

    logger.info(
        "Work health: load=%d index=%d resilience=%d sustainability=%d status=%s",
        cognitive_load,
        performance_index,
        resilience,
        rhythm_recovery,
        status.value,
    )
    return metrics
