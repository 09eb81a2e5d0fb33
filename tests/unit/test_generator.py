"""Unit tests for the Claude-backed insight generator."""

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import anthropic
import httpx
import pytest

from workhealth.core.exceptions import InsightGenerationError
from workhealth.domain.analysis import assemble_work_health
from workhealth.insights.fallback import build_fallback_insights
from workhealth.insights.generator import (
    SYSTEM_PROMPT,
    ClaudeInsightGenerator,
    InsightRequest,
    build_user_prompt,
)
from workhealth.insights.models import HistoricalPatterns, TabType, UserContext

pytestmark = pytest.mark.unit


@pytest.fixture
def request_for_day(schedule_builder):
    """An InsightRequest for a three-meeting day."""
    schedule = schedule_builder(
        ("09:00", "10:00", "Sprint Planning", 4),
        ("10:05", "11:00", "Design Review", 3),
        ("14:00", "15:30", "Customer Call", 2),
    )
    return InsightRequest(
        metrics=assemble_work_health(schedule),
        events=schedule.events,
        tab=TabType.PERFORMANCE,
        timezone=schedule.timezone,
    )


def _reply(text: str) -> SimpleNamespace:
    return SimpleNamespace(content=[SimpleNamespace(type="text", text=text)])


def _fake_client(response=None, side_effect=None) -> MagicMock:
    client = MagicMock()
    client.messages.create = AsyncMock(return_value=response, side_effect=side_effect)
    return client


class TestBuildUserPrompt:
    """Tests for build_user_prompt."""

    def test_includes_metrics_events_and_tab(self, request_for_day):
        """The prompt lists metrics, each event and tab guidance."""
        prompt = build_user_prompt(request_for_day)

        assert "Adaptive Performance Index: 58%" in prompt
        assert "Focus Time: 270 minutes" in prompt
        assert "Sprint Planning (09:00-10:00" in prompt
        assert "3 total, times in America/Los_Angeles" in prompt
        assert "TAB: performance." in prompt
        assert "Historical Avg Meetings: Unknown" in prompt

    def test_includes_user_context(self, request_for_day):
        """History and goals are rendered when present."""
        context = UserContext(
            historical_patterns=HistoricalPatterns(avg_daily_meetings=5.5, avg_focus_time=95.5),
            current_goals=["Ship the beta", "Fewer late meetings"],
        )
        request = InsightRequest(
            metrics=request_for_day.metrics,
            events=request_for_day.events,
            user_context=context,
        )

        prompt = build_user_prompt(request)

        assert "Historical Avg Meetings: 5.5" in prompt
        assert "Historical Avg Focus: 95.5 minutes" in prompt
        assert "Current Goals: Ship the beta, Fewer late meetings" in prompt
        assert "TAB: overview." in prompt

    def test_empty_day(self, schedule_builder):
        """A day without events still renders."""
        schedule = schedule_builder()
        request = InsightRequest(metrics=assemble_work_health(schedule), events=schedule.events)

        prompt = build_user_prompt(request)

        assert "CALENDAR EVENTS (0 total" in prompt


class TestClaudeInsightGenerator:
    """Tests for ClaudeInsightGenerator."""

    def test_health_without_key(self):
        """No key means the generator is unavailable."""
        assert ClaudeInsightGenerator(None).health_status() == "unavailable"

    def test_health_with_client(self):
        """An injected client makes the generator healthy."""
        assert ClaudeInsightGenerator(None, client=_fake_client()).health_status() == "healthy"

    async def test_default_model(self, request_for_day):
        """Without an override the current Sonnet model is requested."""
        client = _fake_client(
            _reply(json.dumps(build_fallback_insights(request_for_day.metrics).to_api_dict()))
        )

        await ClaudeInsightGenerator("key", client=client).generate(request_for_day)

        assert client.messages.create.await_args.kwargs["model"] == "claude-sonnet-4-20250514"

    async def test_generate_without_key_raises(self, request_for_day):
        """Calls fail fast when no key is configured."""
        with pytest.raises(InsightGenerationError, match="not configured"):
            await ClaudeInsightGenerator("").generate(request_for_day)

    async def test_generate_parses_reply(self, request_for_day):
        """A well-formed reply becomes an InsightsPayload."""
        expected = build_fallback_insights(request_for_day.metrics)
        client = _fake_client(_reply("Sure!\n" + json.dumps(expected.to_api_dict())))
        generator = ClaudeInsightGenerator("key", model="test-model", client=client)

        payload = await generator.generate(request_for_day)

        assert payload == expected
        kwargs = client.messages.create.await_args.kwargs
        assert kwargs["model"] == "test-model"
        assert kwargs["system"] == SYSTEM_PROMPT
        assert kwargs["messages"][0]["role"] == "user"
        assert "TAB: performance." in kwargs["messages"][0]["content"]

    async def test_non_text_blocks_are_ignored(self, request_for_day):
        """Only text blocks contribute to the parsed reply."""
        expected = build_fallback_insights(request_for_day.metrics)
        response = SimpleNamespace(
            content=[
                SimpleNamespace(type="tool_use", text="{broken"),
                SimpleNamespace(type="text", text=json.dumps(expected.to_api_dict())),
            ]
        )
        generator = ClaudeInsightGenerator("key", client=_fake_client(response))

        assert await generator.generate(request_for_day) == expected

    async def test_malformed_reply_raises(self, request_for_day):
        """Replies without a valid document raise InsightGenerationError."""
        generator = ClaudeInsightGenerator("key", client=_fake_client(_reply("no json here")))

        with pytest.raises(InsightGenerationError, match="Malformed"):
            await generator.generate(request_for_day)

    async def test_api_errors_are_wrapped(self, request_for_day):
        """SDK errors surface as InsightGenerationError."""
        api_request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
        generator = ClaudeInsightGenerator(
            "key", client=_fake_client(side_effect=anthropic.APITimeoutError(request=api_request))
        )

        with pytest.raises(InsightGenerationError, match="timed out"):
            await generator.generate(request_for_day)

    async def test_connection_errors_are_wrapped(self, request_for_day):
        """Connection failures surface as InsightGenerationError."""
        api_request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
        generator = ClaudeInsightGenerator(
            "key",
            client=_fake_client(side_effect=anthropic.APIConnectionError(request=api_request)),
        )

        with pytest.raises(InsightGenerationError, match="Anthropic API error"):
            await generator.generate(request_for_day)
