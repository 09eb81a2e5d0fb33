"""Models for personalized insights and their validation."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    ValidationError,
    field_validator,
)
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

# Greedy: from the first "{" to the last "}" in the reply
_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")

Number = Union[StrictInt, StrictFloat]


class TabType(str, Enum):
    """Dashboard tab an insight request is made for."""

    OVERVIEW = "overview"
    PERFORMANCE = "performance"
    RESILIENCE = "resilience"
    SUSTAINABILITY = "sustainability"


class InsightSource(str, Enum):
    """Where an insights payload came from."""

    CACHE = "cache"
    GENERATED = "generated"
    FALLBACK = "fallback"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_api_dict(self) -> dict[str, Any]:
        """Return the JSON-ready dict with camelCase field names."""
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class PersonalizedInsight(_CamelModel):
    """One insight card."""

    category: Literal["performance", "wellness", "productivity", "balance", "prediction"]
    title: StrictStr
    message: StrictStr
    severity: Literal["info", "warning", "critical", "success"]
    actionable: StrictBool
    recommendation: Optional[StrictStr] = None
    timeframe: Optional[StrictStr] = None
    confidence: Number

    @field_validator("confidence")
    @classmethod
    def _confidence_in_range(cls, value: float) -> float:
        if not 0 <= value <= 100:
            raise ValueError("confidence must be between 0 and 100")
        return value


class InsightsPayload(_CamelModel):
    """Full insights document returned to clients."""

    insights: list[PersonalizedInsight]
    summary: StrictStr
    overall_score: Number
    risk_factors: list[StrictStr]
    opportunities: list[StrictStr]
    predictive_alerts: list[StrictStr]


class UserPreferences(_CamelModel):
    """Working-hours preferences that shape insight wording."""

    work_start_time: int = Field(default=9, ge=0, le=23)
    work_end_time: int = Field(default=17, ge=1, le=24)
    preferred_focus_blocks: Optional[int] = Field(default=None, ge=0)
    meeting_preference: Literal["minimal", "balanced", "heavy"] = "balanced"


class HistoricalPatterns(_CamelModel):
    """Optional longer-term averages supplied by the caller."""

    avg_daily_meetings: Optional[float] = None
    avg_focus_time: Optional[float] = None
    productive_times: list[int] = Field(default_factory=list)
    burnout_indicators: list[str] = Field(default_factory=list)


class UserContext(_CamelModel):
    """Per-user context passed to the insight generator."""

    user_id: Optional[str] = None
    preferences: UserPreferences = Field(default_factory=UserPreferences)
    historical_patterns: Optional[HistoricalPatterns] = None
    current_goals: list[str] = Field(default_factory=list)


class InsightsResult(BaseModel):
    """Insights plus the bookkeeping needed by callers."""

    payload: InsightsPayload
    source: InsightSource
    cache_key: str
    generated_at: datetime


@dataclass(frozen=True)
class ValidInsights:
    """Reply text contained a well-formed insights document."""

    payload: InsightsPayload


@dataclass(frozen=True)
class MalformedResponse:
    """Reply text could not be turned into an insights document."""

    reason: str
    raw_text: str = ""


ParsedInsights = Union[ValidInsights, MalformedResponse]


def validate_insights_document(document: Any) -> ParsedInsights:
    """Check an already-decoded JSON value against the insights schema."""
    if not isinstance(document, dict):
        return MalformedResponse(reason=f"expected object, got {type(document).__name__}")
    try:
        return ValidInsights(payload=InsightsPayload.model_validate(document))
    except ValidationError as e:
        return MalformedResponse(reason=f"schema mismatch: {e.error_count()} errors")


def parse_insights_response(text: str) -> ParsedInsights:
    """Extract and validate the insights JSON object in a model reply.

    Args:
        text: Raw reply text, possibly with prose around the JSON

    Returns:
        ValidInsights, or MalformedResponse with the reason
    """
    if not text or not text.strip():
        return MalformedResponse(reason="empty response")

    match = _JSON_OBJECT_RE.search(text)
    if match is None:
        return MalformedResponse(reason="no JSON object found", raw_text=text)

    try:
        document = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        return MalformedResponse(reason=f"invalid JSON: {e.msg}", raw_text=text)

    result = validate_insights_document(document)
    if isinstance(result, MalformedResponse):
        logger.debug("Insights reply rejected: %s", result.reason)
        return MalformedResponse(reason=result.reason, raw_text=text)
    return result
