"""Application wiring for the command-line entry point."""

from __future__ import annotations

import datetime
import logging
from pathlib import Path
from typing import Any, Optional

from .calendar.sources import build_event_source
from .core.config_manager import ConfigManager, get_config_value
from .core.http_client import close_all_clients
from .core.logging_config import configure_logging
from .core.timezone_utils import get_default_timezone
from .domain.work_health_service import WorkHealthService
from .insights.cache import InsightCache
from .insights.generator import ClaudeInsightGenerator
from .insights.models import TabType, UserContext
from .insights.service import InsightService

logger = logging.getLogger(__name__)


def build_config(args: Optional[Any] = None, env_file: Optional[Path] = None) -> dict[str, Any]:
    """Load environment configuration and apply command-line overrides.

    Args:
        args: argparse namespace (attributes are optional)
        env_file: .env file to read (defaults to ./.env)

    Returns:
        Configuration dictionary
    """
    config = ConfigManager(env_file).load_full_config()

    if get_config_value(args, "events_file"):
        config["events_file"] = args.events_file
    if get_config_value(args, "sample", False):
        config["use_mock_data"] = True
    if get_config_value(args, "timezone"):
        config["default_timezone"] = args.timezone

    config.setdefault("default_timezone", get_default_timezone())
    return config


async def analyze_from_args(args: Optional[Any] = None) -> dict[str, Any]:
    """Run one analysis as described by CLI arguments.

    Args:
        args: argparse namespace

    Returns:
        ``{"metrics": ...}`` plus ``insights``/``insightsSource`` when requested

    Raises:
        UpstreamFetchError: If the event source cannot be read
        ConfigurationError: If configuration is incomplete
    """
    configure_logging(debug_mode=bool(get_config_value(args, "debug", False)))
    config = build_config(args)

    day: Optional[datetime.date] = None
    day_arg = get_config_value(args, "date")
    if day_arg:
        day = datetime.date.fromisoformat(day_arg)

    source = build_event_source(config)
    service = WorkHealthService(source)

    try:
        analysis = await service.analyze_day(day, config["default_timezone"])
        result: dict[str, Any] = {
            "day": analysis.day.isoformat(),
            "timezone": analysis.schedule.timezone,
            "metrics": analysis.metrics.to_api_dict(),
        }

        if get_config_value(args, "insights", False):
            generator = ClaudeInsightGenerator(
                config.get("anthropic_api_key"),
                model=config["insights_model"],
                timeout=config["insights_timeout_seconds"],
            )
            if generator.health_status() == "unavailable":
                logger.warning("Anthropic API key not configured; insights will use fallback")

            cache = InsightCache(
                path=config.get("insights_cache_path"),
                max_entries_per_user=config["insights_cache_max_entries"],
            )
            insight_service = InsightService(
                generator, cache, timeout=config["insights_timeout_seconds"]
            )
            insights = await insight_service.get_insights(
                analysis,
                TabType(get_config_value(args, "tab") or TabType.OVERVIEW),
                UserContext(user_id=get_config_value(args, "user_id")),
            )
            result["insights"] = insights.payload.to_api_dict()
            result["insightsSource"] = insights.source.value
            result["cacheKey"] = insights.cache_key

        return result
    finally:
        await close_all_clients()
