"""Insight cache key derivation and entry validity.

The key is a SHA-256 digest over a canonical JSON document holding every
input that can change generated insights: each event (in schedule order),
the scoring metrics, the user's working-hour preferences, the tab and the
calendar day. Identical inputs give identical keys; the day is included so
keys roll over at midnight even when the schedule repeats.
"""

from __future__ import annotations

import datetime
import hashlib
import json
from collections.abc import Sequence
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from ..calendar.models import CalendarEvent
from ..domain.models import WorkHealthMetrics
from .models import TabType, UserPreferences

CACHE_TTL = datetime.timedelta(hours=4)


class InsightCacheEntry(BaseModel):
    """Stored insights with the key they were generated for."""

    model_config = ConfigDict(frozen=True)

    cache_key: str = Field(..., min_length=1)
    insights: dict[str, Any]
    timestamp: datetime.datetime


def _event_fingerprint(event: CalendarEvent) -> dict[str, Any]:
    return {
        "summary": event.summary,
        "start": event.start.isoformat(),
        "end": event.end.isoformat(),
        "category": event.category.value,
        "attendeeCount": event.attendee_count,
    }


def build_key_document(
    metrics: WorkHealthMetrics,
    events: Sequence[CalendarEvent],
    preferences: Optional[UserPreferences],
    tab: Union[TabType, str],
    day: datetime.date,
) -> dict[str, Any]:
    """Return the canonical document that the cache key is a digest of."""
    prefs = preferences or UserPreferences()
    schedule = metrics.schedule
    return {
        "events": [_event_fingerprint(event) for event in events],
        "metrics": {
            "adaptivePerformanceIndex": metrics.adaptive_performance_index,
            "cognitiveResilience": metrics.cognitive_resilience,
            "workRhythmRecovery": metrics.work_rhythm_recovery,
            "meetingCount": schedule.meeting_count,
            "backToBackCount": schedule.back_to_back_count,
            "focusTimeMinutes": schedule.focus_time_minutes,
            "fragmentationScore": schedule.fragmentation_score,
        },
        "user": {
            "workStartTime": prefs.work_start_time,
            "workEndTime": prefs.work_end_time,
            "meetingPreference": prefs.meeting_preference,
        },
        "tab": TabType(tab).value,
        "day": day.isoformat(),
    }


def derive_cache_key(
    metrics: WorkHealthMetrics,
    events: Sequence[CalendarEvent],
    preferences: Optional[UserPreferences],
    tab: Union[TabType, str],
    day: datetime.date,
) -> str:
    """Derive the insight cache key.

    Args:
        metrics: Assembled metrics for the day
        events: Normalized events in schedule order
        preferences: User working-hour preferences (defaults when None)
        tab: Dashboard tab
        day: Calendar day the insights are for

    Returns:
        64-character hex digest
    """
    document = build_key_document(metrics, events, preferences, tab, day)
    canonical = json.dumps(document, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def is_entry_valid(
    entry: InsightCacheEntry,
    current_key: str,
    now: datetime.datetime,
    ttl: datetime.timedelta = CACHE_TTL,
) -> bool:
    """Return True when ``entry`` may be served for ``current_key`` at ``now``.

    Requires an exact key match and an age between zero and ``ttl``
    inclusive. Entries stamped in the future are rejected.

    Args:
        entry: Cached entry
        current_key: Key derived for the current request
        now: Current time (timezone-aware)
        ttl: Maximum age

    Returns:
        True if the entry is fresh and matches
    """
    if entry.cache_key != current_key:
        return False

    age = now - entry.timestamp
    return datetime.timedelta(0) <= age <= ttl
