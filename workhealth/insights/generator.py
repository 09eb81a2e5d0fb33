"""Language-model insight generation through the Anthropic Messages API."""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

import anthropic

from ..calendar.models import CalendarEvent
from ..core.config_manager import DEFAULT_INSIGHTS_MODEL, DEFAULT_INSIGHTS_TIMEOUT_SECONDS
from ..core.exceptions import InsightGenerationError
from ..domain.models import WorkHealthMetrics
from .models import (
    InsightsPayload,
    MalformedResponse,
    TabType,
    UserContext,
    parse_insights_response,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOKENS = 4000
DEFAULT_TEMPERATURE = 0.3

SYSTEM_PROMPT = """You are a work-life balance and productivity coach analyzing calendar data to provide personalized insights. Your role is to:

1. Analyze work patterns and cognitive load indicators
2. Identify potential burnout risks and productivity opportunities
3. Provide actionable, personalized recommendations
4. Predict potential scheduling conflicts or wellness issues

Always answer with a single JSON object of this shape:
{
  "insights": [
    {
      "category": "performance" | "wellness" | "productivity" | "balance" | "prediction",
      "title": string,
      "message": string,
      "severity": "info" | "warning" | "critical" | "success",
      "actionable": boolean,
      "recommendation": string (optional),
      "timeframe": string (optional),
      "confidence": number 0-100
    }
  ],
  "summary": string,
  "overallScore": number,
  "riskFactors": [string],
  "opportunities": [string],
  "predictiveAlerts": [string]
}"""

_TAB_GUIDANCE = {
    TabType.OVERVIEW: "Give a balanced overview across performance, wellness and balance.",
    TabType.PERFORMANCE: "Concentrate on performance capacity and focus time.",
    TabType.RESILIENCE: "Concentrate on cognitive resilience, context switching and fatigue.",
    TabType.SUSTAINABILITY: "Concentrate on sustainability, recovery and work rhythm.",
}


@dataclass(frozen=True)
class InsightRequest:
    """Everything the generator needs for one tab of one day."""

    metrics: WorkHealthMetrics
    events: Sequence[CalendarEvent]
    tab: TabType = TabType.OVERVIEW
    timezone: str = "UTC"
    user_context: UserContext = field(default_factory=UserContext)


class InsightGenerator(Protocol):
    """Produces an insights document for a request."""

    async def generate(self, request: InsightRequest) -> InsightsPayload:
        """Generate insights.

        Raises:
            InsightGenerationError: On any failure
        """
        ...


def build_user_prompt(request: InsightRequest) -> str:
    """Render the metrics, events and user context as the user message."""
    metrics = request.metrics
    schedule = metrics.schedule
    prefs = request.user_context.preferences
    history = request.user_context.historical_patterns

    event_lines = [
        f"- {event.summary or '(untitled)'} "
        f"({event.start.strftime('%H:%M')}-{event.end.strftime('%H:%M')}, "
        f"{event.category.value}, {event.attendee_count} attendees)"
        for event in request.events
    ]
    category_counts = Counter(event.category.value for event in request.events)
    pattern_lines = [f"- {name}: {count}" for name, count in sorted(category_counts.items())]

    avg_meetings = history.avg_daily_meetings if history and history.avg_daily_meetings else None
    avg_focus = history.avg_focus_time if history and history.avg_focus_time else None

    lines = [
        "Analyze this user's calendar data and provide personalized insights.",
        "",
        "WORK HEALTH METRICS:",
        f"- Adaptive Performance Index: {metrics.adaptive_performance_index}%",
        f"- Cognitive Load: {metrics.cognitive_load}/100",
        f"- Cognitive Resilience: {metrics.cognitive_resilience}%",
        f"- Work Rhythm Recovery: {metrics.work_rhythm_recovery}%",
        f"- Status: {metrics.status}",
        f"- Meeting Count: {schedule.meeting_count}",
        f"- Back-to-back Count: {schedule.back_to_back_count}",
        f"- Focus Time: {schedule.focus_time_minutes} minutes",
        f"- Fragmentation Score: {schedule.fragmentation_score}",
        "",
        f"CALENDAR EVENTS ({len(request.events)} total, times in {request.timezone}):",
        *(event_lines or ["- none"]),
        "",
        "MEETING PATTERNS:",
        *(pattern_lines or ["- none"]),
        "",
        "USER CONTEXT:",
        f"- Work Hours: {prefs.work_start_time}:00 - {prefs.work_end_time}:00",
        f"- Meeting Preference: {prefs.meeting_preference}",
        f"- Historical Avg Meetings: {avg_meetings if avg_meetings is not None else 'Unknown'}",
        f"- Historical Avg Focus: "
        f"{f'{avg_focus} minutes' if avg_focus is not None else 'Unknown'}",
    ]
    if request.user_context.current_goals:
        lines.append(f"- Current Goals: {', '.join(request.user_context.current_goals)}")

    lines.extend(
        [
            "",
            f"TAB: {request.tab.value}. {_TAB_GUIDANCE[request.tab]}",
            "Focus on actionable, specific advice tailored to this user's patterns.",
        ]
    )
    return "\n".join(lines)


def _reply_text(response: Any) -> str:
    blocks = getattr(response, "content", None) or []
    return "".join(
        getattr(block, "text", "") for block in blocks if getattr(block, "type", None) == "text"
    )


class ClaudeInsightGenerator:
    """InsightGenerator backed by Claude."""

    def __init__(
        self,
        api_key: Optional[str],
        model: str = DEFAULT_INSIGHTS_MODEL,
        timeout: float = DEFAULT_INSIGHTS_TIMEOUT_SECONDS,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        client: Optional[anthropic.AsyncAnthropic] = None,
    ):
        """Initialize the generator.

        Args:
            api_key: Anthropic API key; without one every call fails fast
            model: Model name
            timeout: Request timeout in seconds
            max_tokens: Reply token limit
            client: Preconfigured client (tests)
        """
        self.api_key = api_key or ""
        self.model = model
        self.timeout = timeout
        self.max_tokens = max_tokens
        self._client = client
        if self._client is None and self.api_key:
            self._client = anthropic.AsyncAnthropic(
                api_key=self.api_key, timeout=timeout, max_retries=0
            )

    def health_status(self) -> str:
        """Return ``"healthy"`` when an API key is configured, else ``"unavailable"``."""
        return "healthy" if self._client is not None else "unavailable"

    async def generate(self, request: InsightRequest) -> InsightsPayload:
        """Ask the model for insights and validate the reply.

        Args:
            request: Metrics, events and context for one tab

        Returns:
            Validated InsightsPayload

        Raises:
            InsightGenerationError: Missing key, API failure or malformed reply
        """
        if self._client is None:
            raise InsightGenerationError("Anthropic API key is not configured")

        try:
            response = await self._client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=DEFAULT_TEMPERATURE,
                system=SYSTEM_PROMPT,
                messages=[{"role": "user", "content": build_user_prompt(request)}],
            )
        except anthropic.RateLimitError as e:
            raise InsightGenerationError(f"Rate limited by Anthropic API: {e}") from e
        except anthropic.AuthenticationError as e:
            raise InsightGenerationError(f"Invalid Anthropic API key: {e}") from e
        except anthropic.APITimeoutError as e:
            raise InsightGenerationError(f"Anthropic API timed out: {e}") from e
        except anthropic.APIError as e:
            raise InsightGenerationError(f"Anthropic API error: {e}") from e

        text = _reply_text(response)
        parsed = parse_insights_response(text)
        if isinstance(parsed, MalformedResponse):
            raise InsightGenerationError(f"Malformed insights reply: {parsed.reason}")

        logger.debug(
            "Generated %d insights for tab %s", len(parsed.payload.insights), request.tab.value
        )
        return parsed.payload
