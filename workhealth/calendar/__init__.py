"""Calendar event ingestion: sources, normalization and categorization."""

from .models import CalendarEvent, MeetingCategory, NormalizedSchedule
from .normalizer import build_calendar_event, normalize_events

__all__ = [
    "CalendarEvent",
    "MeetingCategory",
    "NormalizedSchedule",
    "build_calendar_event",
    "normalize_events",
]
