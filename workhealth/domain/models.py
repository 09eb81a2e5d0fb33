"""Result models for the work health analysis.

Field names serialize in camelCase so ``to_api_dict()`` output can be
returned directly to dashboard clients.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class PerformanceStatus(str, Enum):
    """Discrete label derived from the adaptive performance index."""

    EXCELLENT = "EXCELLENT"
    GOOD = "GOOD"
    MODERATE = "MODERATE"
    NEEDS_ATTENTION = "NEEDS_ATTENTION"


class ResilienceLevel(str, Enum):
    """Cognitive resilience bands."""

    CRITICAL = "CRITICAL"
    MODERATE = "MODERATE"
    STRONG = "STRONG"


class SustainabilityLevel(str, Enum):
    """Work rhythm recovery bands."""

    UNSUSTAINABLE = "UNSUSTAINABLE"
    ADEQUATE = "ADEQUATE"
    EXCELLENT = "EXCELLENT"


class _ApiModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )

    def to_api_dict(self) -> dict[str, Any]:
        """Return the JSON-ready dict with camelCase field names."""
        return self.model_dump(by_alias=True, mode="json")


class ScheduleMetrics(_ApiModel):
    """Shape of the day's schedule."""

    meeting_count: int = Field(..., ge=0)
    back_to_back_count: int = Field(..., ge=0)
    total_duration_hours: float = Field(..., ge=0)
    focus_time_minutes: int = Field(..., ge=0)
    buffer_time_minutes: int = Field(..., ge=0)
    fragmentation_score: int = Field(..., ge=0, le=100)


class MetricsBreakdown(_ApiModel):
    """Human-readable explanation of the scores."""

    source: str = Field(default="calendar")
    contributors: list[str] = Field(default_factory=list)
    primary_factors: list[str] = Field(default_factory=list)


class WorkHealthMetrics(_ApiModel):
    """Assembled analysis for one day."""

    cognitive_load: int = Field(..., ge=0, le=100, description="Higher means more load")
    adaptive_performance_index: int = Field(..., ge=0, le=100)
    readiness: int = Field(..., ge=0, le=100, description="Alias of the performance index")
    cognitive_resilience: int = Field(..., ge=0, le=100)
    work_rhythm_recovery: int = Field(..., ge=0, le=100)
    status: PerformanceStatus
    schedule: ScheduleMetrics
    breakdown: MetricsBreakdown
