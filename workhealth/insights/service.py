"""Insight retrieval: cache gate, generator call and fallback substitution."""

from __future__ import annotations

import asyncio
import datetime
import logging
from typing import Optional, Union

from ..core.exceptions import InsightGenerationError
from ..core.timezone_utils import now_utc
from ..domain.work_health_service import DayAnalysis
from .cache import InsightCache
from .cache_key import derive_cache_key
from .fallback import build_fallback_insights
from .generator import InsightGenerator, InsightRequest
from .models import InsightSource, InsightsResult, TabType, UserContext

logger = logging.getLogger(__name__)

ANONYMOUS_USER = "anonymous"


class InsightService:
    """Serve insights for an analysed day.

    A valid cached entry is returned as-is. Otherwise the generator is called
    under a timeout; successful results are cached, failures are replaced by
    rule-based fallback insights which are not cached.
    """

    def __init__(
        self,
        generator: InsightGenerator,
        cache: Optional[InsightCache] = None,
        timeout: float = 30.0,
    ):
        self.generator = generator
        self.cache = cache if cache is not None else InsightCache()
        self.timeout = timeout

    async def get_insights(
        self,
        analysis: DayAnalysis,
        tab: Union[TabType, str] = TabType.OVERVIEW,
        user_context: Optional[UserContext] = None,
        now: Optional[datetime.datetime] = None,
    ) -> InsightsResult:
        """Return insights for ``analysis`` and ``tab``.

        Args:
            analysis: Result of WorkHealthService.analyze_day
            tab: Dashboard tab
            user_context: User id and preferences
            now: Current time (defaults to now in UTC)

        Returns:
            InsightsResult tagged with where the payload came from
        """
        tab = TabType(tab)
        context = user_context or UserContext()
        user_id = context.user_id or ANONYMOUS_USER
        now = now or now_utc()

        cache_key = derive_cache_key(
            analysis.metrics, analysis.schedule.events, context.preferences, tab, analysis.day
        )

        cached = self.cache.lookup_payload(user_id, tab, cache_key, now)
        if cached is not None:
            logger.info("Serving cached insights for %s/%s", user_id, tab.value)
            return InsightsResult(
                payload=cached, source=InsightSource.CACHE, cache_key=cache_key, generated_at=now
            )

        request = InsightRequest(
            metrics=analysis.metrics,
            events=analysis.schedule.events,
            tab=tab,
            timezone=analysis.schedule.timezone,
            user_context=context,
        )

        try:
            payload = await asyncio.wait_for(self.generator.generate(request), self.timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "Insight generation timed out after %.1fs; using fallback insights",
                self.timeout,
            )
        except InsightGenerationError as e:
            logger.warning("Insight generation failed (%s); using fallback insights", e)
        except Exception:
            logger.exception("Unexpected insight generator error; using fallback insights")
        else:
            self.cache.store(user_id, tab, cache_key, payload, now)
            logger.info("Generated insights for %s/%s", user_id, tab.value)
            return InsightsResult(
                payload=payload,
                source=InsightSource.GENERATED,
                cache_key=cache_key,
                generated_at=now,
            )

        return InsightsResult(
            payload=build_fallback_insights(analysis.metrics, tab),
            source=InsightSource.FALLBACK,
            cache_key=cache_key,
            generated_at=now,
        )
