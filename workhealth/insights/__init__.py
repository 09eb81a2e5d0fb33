"""Personalized insights: cache key, cache, generator and fallback."""

from .cache import InsightCache
from .cache_key import InsightCacheEntry, derive_cache_key, is_entry_valid
from .fallback import build_fallback_insights
from .generator import ClaudeInsightGenerator, InsightRequest
from .models import (
    InsightsPayload,
    InsightsResult,
    MalformedResponse,
    TabType,
    UserContext,
    UserPreferences,
    ValidInsights,
    parse_insights_response,
)
from .service import InsightService

__all__ = [
    "ClaudeInsightGenerator",
    "InsightCache",
    "InsightCacheEntry",
    "InsightRequest",
    "InsightService",
    "InsightsPayload",
    "InsightsResult",
    "MalformedResponse",
    "TabType",
    "UserContext",
    "UserPreferences",
    "ValidInsights",
    "build_fallback_insights",
    "derive_cache_key",
    "is_entry_valid",
    "parse_insights_response",
]
