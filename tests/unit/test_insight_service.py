"""Unit tests for InsightService cache gating and fallback."""

import asyncio
import datetime

import pytest

from workhealth.calendar.sources import SampleDaySource
from workhealth.core.exceptions import InsightGenerationError
from workhealth.domain.work_health_service import WorkHealthService
from workhealth.insights.cache import InsightCache
from workhealth.insights.fallback import build_fallback_insights
from workhealth.insights.models import InsightSource, TabType, UserContext
from workhealth.insights.service import InsightService

pytestmark = pytest.mark.unit

NOW = datetime.datetime(2025, 9, 15, 18, 0, tzinfo=datetime.timezone.utc)


class FakeGenerator:
    """Generator double that records calls and returns fallback-shaped payloads."""

    def __init__(self, error=None, delay=0.0):
        self.calls = []
        self.error = error
        self.delay = delay

    async def generate(self, request):
        self.calls.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        payload = build_fallback_insights(request.metrics, request.tab)
        return payload.model_copy(update={"summary": "generated"})


@pytest.fixture
async def analysis(test_day, test_timezone):
    """Analysis of the sample day."""
    return await WorkHealthService(SampleDaySource()).analyze_day(test_day, test_timezone)


class TestInsightService:
    """Tests for InsightService.get_insights."""

    async def test_generates_then_serves_from_cache(self, analysis):
        """The second identical request is a cache hit without a generator call."""
        generator = FakeGenerator()
        service = InsightService(generator, InsightCache())
        context = UserContext(user_id="u1")

        first = await service.get_insights(analysis, TabType.OVERVIEW, context, NOW)
        second = await service.get_insights(
            analysis, TabType.OVERVIEW, context, NOW + datetime.timedelta(minutes=5)
        )

        assert first.source == InsightSource.GENERATED
        assert second.source == InsightSource.CACHE
        assert first.payload == second.payload
        assert first.payload.summary == "generated"
        assert first.cache_key == second.cache_key
        assert len(generator.calls) == 1

    async def test_tabs_are_cached_separately(self, analysis):
        """Each tab triggers its own generation."""
        generator = FakeGenerator()
        service = InsightService(generator)

        await service.get_insights(analysis, "overview", now=NOW)
        result = await service.get_insights(analysis, "resilience", now=NOW)

        assert result.source == InsightSource.GENERATED
        assert [call.tab for call in generator.calls] == [
            TabType.OVERVIEW,
            TabType.RESILIENCE,
        ]

    async def test_expired_entry_regenerates(self, analysis):
        """After four hours the generator is called again."""
        generator = FakeGenerator()
        service = InsightService(generator)

        await service.get_insights(analysis, now=NOW)
        result = await service.get_insights(
            analysis, now=NOW + datetime.timedelta(hours=4, minutes=1)
        )

        assert result.source == InsightSource.GENERATED
        assert len(generator.calls) == 2

    async def test_generation_failure_uses_uncached_fallback(self, analysis):
        """Failures return fallback insights and leave the cache empty."""
        cache = InsightCache()
        generator = FakeGenerator(error=InsightGenerationError("boom"))
        service = InsightService(generator, cache)

        first = await service.get_insights(analysis, TabType.SUSTAINABILITY, now=NOW)
        second = await service.get_insights(analysis, TabType.SUSTAINABILITY, now=NOW)

        assert first.source == InsightSource.FALLBACK
        assert first.payload == build_fallback_insights(analysis.metrics, TabType.SUSTAINABILITY)
        assert second.source == InsightSource.FALLBACK
        assert len(generator.calls) == 2
        assert cache.get_stats()["entries"] == 0

    async def test_timeout_uses_fallback(self, analysis):
        """A generator slower than the timeout is replaced by fallback insights."""
        generator = FakeGenerator(delay=1.0)
        service = InsightService(generator, timeout=0.01)

        result = await service.get_insights(analysis, now=NOW)

        assert result.source == InsightSource.FALLBACK

    async def test_unexpected_generator_error_uses_fallback(self, analysis, caplog):
        """Errors outside InsightGenerationError are logged and never escape."""
        cache = InsightCache()
        generator = FakeGenerator(error=RuntimeError("generator crashed"))
        service = InsightService(generator, cache)

        with caplog.at_level("ERROR"):
            result = await service.get_insights(analysis, TabType.PERFORMANCE, now=NOW)

        assert result.source == InsightSource.FALLBACK
        assert result.payload == build_fallback_insights(analysis.metrics, TabType.PERFORMANCE)
        assert cache.get_stats()["entries"] == 0
        assert "Unexpected insight generator error" in caplog.text

    async def test_anonymous_user_slot(self, analysis):
        """Requests without a user id share the anonymous slot."""
        cache = InsightCache()
        service = InsightService(FakeGenerator(), cache)

        await service.get_insights(analysis, now=NOW)

        assert cache.user_entry_count("anonymous") == 1

    async def test_preferences_change_the_key(self, analysis):
        """Different working hours do not reuse cached insights."""
        generator = FakeGenerator()
        service = InsightService(generator)
        early = UserContext.model_validate({"preferences": {"workStartTime": 7}})

        first = await service.get_insights(analysis, now=NOW)
        second = await service.get_insights(analysis, user_context=early, now=NOW)

        assert first.cache_key != second.cache_key
        assert second.source == InsightSource.GENERATED
