"""Raw provider events to a sorted, timezone-aligned NormalizedSchedule.

Raw events follow the Google Calendar API v3 event resource shape::

    {
        "id": "abc123",
        "summary": "Sprint Planning",
        "status": "confirmed",
        "transparency": "opaque",
        "start": {"dateTime": "2025-09-15T09:00:00-07:00"},
        "end": {"dateTime": "2025-09-15T10:00:00-07:00"},
        "attendees": [{"email": "me@example.com", "self": true, "responseStatus": "accepted"}],
        "recurringEventId": "abc",
    }
"""

from __future__ import annotations

import datetime
import logging
import zoneinfo
from collections.abc import Iterable, Mapping
from typing import Any, Optional

from dateutil import parser as date_parser
from pydantic import ValidationError

from ..core.exceptions import InvalidEventError
from .categorizer import categorize_meeting
from .models import CalendarEvent, NormalizedSchedule

logger = logging.getLogger(__name__)


def parse_instant(
    boundary: Any, tz: datetime.tzinfo, event_id: Optional[str], which: str
) -> datetime.datetime:
    """Parse a ``start``/``end`` object into an aware datetime in ``tz``.

    Raises:
        InvalidEventError: If the timestamp is missing or cannot be parsed
    """
    if not isinstance(boundary, Mapping) or not boundary.get("dateTime"):
        raise InvalidEventError(f"Event has no {which}.dateTime", event_id=event_id)

    raw = boundary["dateTime"]
    try:
        parsed = date_parser.isoparse(str(raw))
    except (ValueError, OverflowError) as e:
        raise InvalidEventError(
            f"Unparseable {which} timestamp {raw!r}: {e}", event_id=event_id
        ) from e

    if parsed.tzinfo is None:
        # Floating time: interpret in the event's own zone when given
        zone_name = boundary.get("timeZone")
        source_tz: datetime.tzinfo = tz
        if zone_name:
            try:
                source_tz = zoneinfo.ZoneInfo(zone_name)
            except (zoneinfo.ZoneInfoNotFoundError, ValueError):
                logger.debug("Unknown event timeZone %r, using schedule timezone", zone_name)
        parsed = parsed.replace(tzinfo=source_tz)

    return parsed.astimezone(tz)


def is_timed_event(raw_event: Mapping[str, Any]) -> bool:
    """Return False for all-day events, which carry ``date`` without ``dateTime``.

    Events with no usable bounds at all pass through so the builder can
    reject them as malformed.
    """
    start = raw_event.get("start")
    end = raw_event.get("end")
    if not isinstance(start, Mapping) or not isinstance(end, Mapping):
        return True
    if start.get("dateTime") or end.get("dateTime"):
        return True
    return not (start.get("date") or end.get("date"))


def is_busy_accepted(raw_event: Mapping[str, Any]) -> bool:
    """Return True for events that occupy the user's time.

    Cancelled events, events marked free (``transparency == "transparent"``)
    and events the user declined are not busy.
    """
    if raw_event.get("status") == "cancelled":
        return False
    if raw_event.get("transparency") == "transparent":
        return False

    for attendee in raw_event.get("attendees") or []:
        if isinstance(attendee, Mapping) and attendee.get("self"):
            return attendee.get("responseStatus") != "declined"
    return True


def build_calendar_event(raw_event: Mapping[str, Any], tz: datetime.tzinfo) -> CalendarEvent:
    """Build a CalendarEvent from one raw provider event.

    Args:
        raw_event: Provider event mapping
        tz: Timezone the schedule is analysed in

    Returns:
        CalendarEvent expressed in ``tz``

    Raises:
        InvalidEventError: Missing/unparseable timestamps or non-positive duration
    """
    event_id = raw_event.get("id")
    event_id = str(event_id) if event_id is not None else None

    start = parse_instant(raw_event.get("start"), tz, event_id, "start")
    end = parse_instant(raw_event.get("end"), tz, event_id, "end")

    if end <= start:
        raise InvalidEventError(
            f"Non-positive duration ({(end - start).total_seconds() / 60:.0f} minutes)",
            event_id=event_id,
        )

    attendees = raw_event.get("attendees")
    attendee_count = len(attendees) if isinstance(attendees, list) and attendees else 1

    summary = raw_event.get("summary") or ""

    try:
        return CalendarEvent(
            id=event_id or f"{start.isoformat()}-{summary}",
            summary=str(summary),
            start=start,
            end=end,
            attendee_count=attendee_count,
            is_recurring=bool(raw_event.get("recurringEventId") or raw_event.get("recurrence")),
            category=categorize_meeting(str(summary)),
        )
    except ValidationError as e:
        raise InvalidEventError(f"Invalid event fields: {e}", event_id=event_id) from e


def normalize_events(
    raw_events: Iterable[Mapping[str, Any]], tz: datetime.tzinfo
) -> NormalizedSchedule:
    """Convert a day's raw provider events into a NormalizedSchedule.

    Non-busy and all-day events are dropped silently. Malformed events are
    logged and skipped; they never abort the analysis.

    Args:
        raw_events: Raw events for one local day window
        tz: Caller's timezone

    Returns:
        NormalizedSchedule sorted by start (stable on ties)
    """
    events: list[CalendarEvent] = []
    skipped = 0

    for raw_event in raw_events:
        if not isinstance(raw_event, Mapping):
            logger.warning("Skipping non-object calendar entry: %r", type(raw_event).__name__)
            skipped += 1
            continue

        if not is_busy_accepted(raw_event):
            logger.debug("Dropping non-busy event %s", raw_event.get("id"))
            continue

        if not is_timed_event(raw_event):
            logger.debug("Dropping all-day event %s", raw_event.get("id"))
            continue

        try:
            events.append(build_calendar_event(raw_event, tz))
        except InvalidEventError as e:
            logger.warning("Skipping invalid event %s: %s", e.event_id, e)
            skipped += 1

    ordered = sorted(events, key=lambda event: event.start)

    tz_name = getattr(tz, "key", None) or str(tz)
    logger.debug("Normalized %d events (%d skipped) in %s", len(ordered), skipped, tz_name)

    return NormalizedSchedule(events=tuple(ordered), timezone=tz_name, skipped_count=skipped)
