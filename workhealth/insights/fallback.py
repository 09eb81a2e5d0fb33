"""Deterministic rule-based insights used when generation is unavailable."""

from __future__ import annotations

from typing import Union

from ..domain.analysis import COGNITIVE_LOAD_HEAVY, FOCUS_STRONG_MINUTES
from ..domain.models import PerformanceStatus, WorkHealthMetrics
from ..domain.performance_index import (
    RESILIENCE_CRITICAL_MAX,
    SUSTAINABILITY_UNSUSTAINABLE_MAX,
)
from .models import InsightsPayload, PersonalizedInsight, TabType

PERFORMANCE_WARNING_BELOW = 55
BACK_TO_BACK_WARNING = 2
BURNOUT_ALERT_BACK_TO_BACK = 4
OVERLOAD_ALERT_MEETINGS = 8

# Insight category shown first on each tab
_TAB_FOCUS = {
    TabType.OVERVIEW: None,
    TabType.PERFORMANCE: "performance",
    TabType.RESILIENCE: "wellness",
    TabType.SUSTAINABILITY: "balance",
}


def _overall_score(metrics: WorkHealthMetrics, tab: TabType) -> int:
    if tab == TabType.RESILIENCE:
        return metrics.cognitive_resilience
    if tab == TabType.SUSTAINABILITY:
        return metrics.work_rhythm_recovery
    return metrics.adaptive_performance_index


def _build_insights(metrics: WorkHealthMetrics) -> list[PersonalizedInsight]:
    schedule = metrics.schedule
    insights: list[PersonalizedInsight] = []

    if metrics.adaptive_performance_index < PERFORMANCE_WARNING_BELOW:
        insights.append(
            PersonalizedInsight(
                category="performance",
                title="Performance Optimization Needed",
                message=(
                    f"Your adaptive performance index is "
                    f"{metrics.adaptive_performance_index}%. Reducing meeting load or "
                    "adding focus blocks would raise your capacity."
                ),
                severity="warning",
                actionable=True,
                recommendation=(
                    "Block a 2-hour focus period and decline non-essential meetings."
                ),
                timeframe="today",
                confidence=85,
            )
        )

    if metrics.cognitive_resilience <= RESILIENCE_CRITICAL_MAX:
        insights.append(
            PersonalizedInsight(
                category="wellness",
                title="Cognitive Overload Risk",
                message=(
                    f"Cognitive resilience is {metrics.cognitive_resilience}%, pointing to "
                    "high switching costs and decision fatigue."
                ),
                severity="critical",
                actionable=True,
                recommendation="Take short breaks between meetings and batch similar tasks.",
                timeframe="today",
                confidence=80,
            )
        )

    if metrics.work_rhythm_recovery <= SUSTAINABILITY_UNSUSTAINABLE_MAX:
        insights.append(
            PersonalizedInsight(
                category="balance",
                title="Unsustainable Pace",
                message=(
                    f"Your sustainability index is {metrics.work_rhythm_recovery}%. "
                    "Today's rhythm leaves little room for recovery."
                ),
                severity="warning",
                actionable=True,
                recommendation="Protect at least one 30-minute break in the afternoon.",
                timeframe="this week",
                confidence=75,
            )
        )

    if schedule.back_to_back_count >= BACK_TO_BACK_WARNING:
        insights.append(
            PersonalizedInsight(
                category="balance",
                title="Consecutive Meetings",
                message=(
                    f"You have {schedule.back_to_back_count} back-to-back meetings, "
                    "which adds mental fatigue."
                ),
                severity="warning",
                actionable=True,
                recommendation="Add 15-minute buffers between meetings for transitions.",
                timeframe="today",
                confidence=90,
            )
        )

    if schedule.focus_time_minutes >= FOCUS_STRONG_MINUTES:
        hours = schedule.focus_time_minutes / 60
        insights.append(
            PersonalizedInsight(
                category="productivity",
                title="Focus Time Available",
                message=f"You have {hours:.1f} hours of focus time, good for deep work.",
                severity="success",
                actionable=True,
                recommendation="Use your focus blocks for the most demanding work.",
                timeframe="today",
                confidence=95,
            )
        )

    if not insights:
        insights.append(
            PersonalizedInsight(
                category="balance",
                title="Balanced Day",
                message="Your schedule is balanced with manageable cognitive demands.",
                severity="info",
                actionable=False,
                confidence=70,
            )
        )

    return insights


def build_fallback_insights(
    metrics: WorkHealthMetrics, tab: Union[TabType, str] = TabType.OVERVIEW
) -> InsightsPayload:
    """Build an insights document from metric thresholds alone.

    Args:
        metrics: Assembled metrics for the day
        tab: Dashboard tab; its category is listed first

    Returns:
        InsightsPayload
    """
    tab = TabType(tab)
    schedule = metrics.schedule
    insights = _build_insights(metrics)

    focus_category = _TAB_FOCUS[tab]
    if focus_category:
        # Stable sort keeps rule order within each group
        insights.sort(key=lambda insight: insight.category != focus_category)

    risk_factors: list[str] = []
    if metrics.cognitive_load >= COGNITIVE_LOAD_HEAVY:
        risk_factors.append("High cognitive load")
    if metrics.cognitive_resilience <= RESILIENCE_CRITICAL_MAX:
        risk_factors.extend(["Context switching", "Decision fatigue"])
    if metrics.work_rhythm_recovery <= SUSTAINABILITY_UNSUSTAINABLE_MAX:
        risk_factors.append("Insufficient recovery time")

    if schedule.focus_time_minutes >= FOCUS_STRONG_MINUTES:
        opportunities = ["Deep work opportunities", "Creative problem solving"]
    else:
        opportunities = ["Schedule optimization"]

    predictive_alerts: list[str] = []
    if schedule.back_to_back_count >= BURNOUT_ALERT_BACK_TO_BACK:
        predictive_alerts.append("Burnout risk from meeting overload")
    if schedule.meeting_count >= OVERLOAD_ALERT_MEETINGS:
        predictive_alerts.append("Meeting volume likely to crowd out priority work")

    status = PerformanceStatus(metrics.status).value
    summary = (
        f"Current work health status: {status}. "
        f"Focus on {insights[0].category}."
    )

    return InsightsPayload(
        insights=insights,
        summary=summary,
        overall_score=_overall_score(metrics, tab),
        risk_factors=risk_factors,
        opportunities=opportunities,
        predictive_alerts=predictive_alerts,
    )
