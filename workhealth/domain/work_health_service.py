"""Fetch, normalize and score one calendar day.

Usage:
    service = WorkHealthService(SampleDaySource())
    analysis = await service.analyze_day(date.today(), "America/New_York")
    print(analysis.metrics.to_api_dict())
"""

from __future__ import annotations

import datetime
import logging
import time
from dataclasses import dataclass
from typing import Optional, Union

from ..calendar.models import NormalizedSchedule
from ..calendar.normalizer import normalize_events
from ..calendar.sources import EventSource
from ..core.logging_config import new_analysis_id
from ..core.timezone_utils import local_today, resolve_timezone
from .analysis import assemble_work_health
from .models import WorkHealthMetrics

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DayAnalysis:
    """Everything produced for one day: the input schedule and its metrics."""

    analysis_id: str
    day: datetime.date
    schedule: NormalizedSchedule
    metrics: WorkHealthMetrics
    raw_event_count: int = 0
    elapsed_seconds: float = 0.0


class WorkHealthService:
    """Runs the fetch -> normalize -> assemble flow against an injected source."""

    def __init__(self, source: EventSource):
        self.source = source

    async def analyze_day(
        self,
        day: Optional[datetime.date] = None,
        timezone: Optional[Union[str, datetime.tzinfo]] = None,
    ) -> DayAnalysis:
        """Analyse one local calendar day.

        Args:
            day: Day to analyse (defaults to today in ``timezone``)
            timezone: IANA name or tzinfo (defaults to the configured timezone)

        Returns:
            DayAnalysis with the normalized schedule and WorkHealthMetrics

        Raises:
            UpstreamFetchError: If the event source cannot be read
            ConfigurationError: If ``timezone`` is not a known timezone
        """
        analysis_id = new_analysis_id()
        started = time.perf_counter()

        tz = timezone if isinstance(timezone, datetime.tzinfo) else resolve_timezone(timezone)
        target_day = day or local_today(tz)

        logger.info(
            "Analysing %s in %s with %s",
            target_day.isoformat(),
            getattr(tz, "key", str(tz)),
            type(self.source).__name__,
        )

        raw_events = await self.source.fetch_events(target_day, tz)
        schedule = normalize_events(raw_events, tz)
        metrics = assemble_work_health(schedule)

        elapsed = time.perf_counter() - started
        logger.debug(
            "Analysis %s finished in %.3fs (%d raw, %d kept, %d skipped)",
            analysis_id,
            elapsed,
            len(raw_events),
            len(schedule.events),
            schedule.skipped_count,
        )

        return DayAnalysis(
            analysis_id=analysis_id,
            day=target_day,
            schedule=schedule,
            metrics=metrics,
            raw_event_count=len(raw_events),
            elapsed_seconds=elapsed,
        )
