"""Data models for normalized calendar events."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class MeetingCategory(str, Enum):
    """Keyword-derived classification of a meeting."""

    BENEFICIAL = "BENEFICIAL"
    NEUTRAL = "NEUTRAL"
    FOCUS_WORK = "FOCUS_WORK"
    LIGHT_MEETINGS = "LIGHT_MEETINGS"
    HEAVY_MEETINGS = "HEAVY_MEETINGS"
    COLLABORATIVE = "COLLABORATIVE"


class CalendarEvent(BaseModel):
    """A single timed meeting after normalization.

    ``start`` and ``end`` are timezone-aware and expressed in the timezone of
    the schedule the event belongs to.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Provider event identifier")
    summary: str = Field(default="", description="Meeting title, possibly empty")
    start: datetime = Field(..., description="Start instant (timezone-aware)")
    end: datetime = Field(..., description="End instant (timezone-aware)")
    attendee_count: int = Field(default=1, ge=0, description="Number of attendees")
    is_recurring: bool = Field(default=False, description="Part of a recurring series")
    category: MeetingCategory = Field(
        default=MeetingCategory.COLLABORATIVE, description="Meeting category"
    )

    @model_validator(mode="after")
    def _check_instants(self) -> "CalendarEvent":
        if self.start.tzinfo is None or self.end.tzinfo is None:
            raise ValueError("start and end must be timezone-aware")
        if self.end <= self.start:
            raise ValueError("end must be after start")
        return self

    @property
    def duration_minutes(self) -> float:
        """Duration in minutes."""
        return (self.end - self.start).total_seconds() / 60


class NormalizedSchedule(BaseModel):
    """One day of normalized events, sorted by start time."""

    model_config = ConfigDict(frozen=True)

    events: tuple[CalendarEvent, ...] = Field(default_factory=tuple)
    timezone: str = Field(..., description="IANA timezone the events are expressed in")
    skipped_count: int = Field(default=0, ge=0, description="Malformed events dropped")

    @property
    def is_empty(self) -> bool:
        """True when the day has no meetings."""
        return not self.events

    def __len__(self) -> int:
        return len(self.events)
