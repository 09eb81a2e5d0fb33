"""Timezone resolution and day-window utilities for workhealth."""

from __future__ import annotations

import datetime
import logging
import os
import zoneinfo

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Default fallback timezone for all timezone operations
DEFAULT_TIMEZONE = "America/Los_Angeles"  # Pacific timezone

# Common abbreviations seen in client-supplied timezone strings
TZ_ABBREV_MAP: dict[str, str] = {
    "PST": "America/Los_Angeles",
    "PDT": "America/Los_Angeles",
    "EST": "America/New_York",
    "EDT": "America/New_York",
    "CST": "America/Chicago",
    "CDT": "America/Chicago",
    "MST": "America/Denver",
    "MDT": "America/Denver",
    "GMT": "UTC",
    "Z": "UTC",
}


def get_default_timezone(fallback: str = DEFAULT_TIMEZONE) -> str:
    """Return the configured default timezone name.

    Reads WORKHEALTH_DEFAULT_TIMEZONE and falls back to ``fallback`` when the
    variable is unset or not a valid IANA name.

    Args:
        fallback: Timezone to use if the environment does not provide one

    Returns:
        IANA timezone identifier
    """
    configured = os.environ.get("WORKHEALTH_DEFAULT_TIMEZONE", "").strip()
    if not configured:
        return fallback

    normalized = normalize_timezone_name(configured)
    if normalized is None:
        logger.warning(
            "Invalid WORKHEALTH_DEFAULT_TIMEZONE=%r; using %s", configured, fallback
        )
        return fallback
    return normalized


def normalize_timezone_name(tz_str: str) -> str | None:
    """Normalize a timezone string to a loadable IANA identifier.

    Args:
        tz_str: IANA name or common abbreviation (e.g. "PST")

    Returns:
        IANA timezone identifier, or None if it cannot be resolved
    """
    if not tz_str:
        return None

    candidate = TZ_ABBREV_MAP.get(tz_str.strip().upper(), tz_str.strip())
    try:
        zoneinfo.ZoneInfo(candidate)
    except (zoneinfo.ZoneInfoNotFoundError, ValueError):
        logger.debug("Unknown timezone: %s", tz_str)
        return None
    return candidate


def resolve_timezone(tz_str: str | None) -> zoneinfo.ZoneInfo:
    """Resolve a request timezone to a ZoneInfo.

    Args:
        tz_str: Timezone name, or None for the configured default

    Returns:
        ZoneInfo for the timezone

    Raises:
        ConfigurationError: If a timezone was given and cannot be resolved
    """
    if tz_str is None:
        return zoneinfo.ZoneInfo(get_default_timezone())

    normalized = normalize_timezone_name(tz_str)
    if normalized is None:
        raise ConfigurationError(f"Invalid timezone: {tz_str!r}")
    return zoneinfo.ZoneInfo(normalized)


def now_utc() -> datetime.datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.datetime.now(datetime.timezone.utc)


def local_today(tz: datetime.tzinfo) -> datetime.date:
    """Return today's calendar date as seen in ``tz``."""
    return now_utc().astimezone(tz).date()


def day_window(
    day: datetime.date, tz: datetime.tzinfo
) -> tuple[datetime.datetime, datetime.datetime]:
    """Return the local-midnight to local-midnight window for ``day``.

    The bounds are computed in ``tz`` so DST transitions produce 23 or 25 hour
    windows rather than shifting the day.

    Args:
        day: Calendar date in the caller's timezone
        tz: Caller's timezone

    Returns:
        (start, end) as aware UTC datetimes, end exclusive
    """
    start_local = datetime.datetime.combine(day, datetime.time.min, tzinfo=tz)
    end_local = datetime.datetime.combine(
        day + datetime.timedelta(days=1), datetime.time.min, tzinfo=tz
    )
    return (
        start_local.astimezone(datetime.timezone.utc),
        end_local.astimezone(datetime.timezone.utc),
    )
