"""Shared fixtures for workhealth tests."""

import datetime
import zoneinfo
from collections.abc import AsyncIterator, Generator
from typing import Any, Callable, Optional

import pytest

from workhealth.calendar.models import CalendarEvent, NormalizedSchedule
from workhealth.calendar.normalizer import normalize_events
from workhealth.core.http_client import close_all_clients

TEST_DAY = datetime.date(2025, 9, 15)
TEST_TZ_NAME = "America/Los_Angeles"


def pytest_configure(config: Any) -> None:
    """Register the markers used across the suite."""
    config.addinivalue_line("markers", "unit: Fast unit tests")
    config.addinivalue_line("markers", "integration: Tests that wire several modules together")


@pytest.fixture
def test_timezone() -> str:
    """Return a deterministic timezone identifier for tests.

    Using a fixed timezone string avoids host-local timezone differences
    which can make datetime-sensitive tests flaky.
    """
    return TEST_TZ_NAME


@pytest.fixture
def tz(test_timezone: str) -> zoneinfo.ZoneInfo:
    """ZoneInfo for ``test_timezone``."""
    return zoneinfo.ZoneInfo(test_timezone)


@pytest.fixture
def test_day() -> datetime.date:
    """A Monday outside any DST transition."""
    return TEST_DAY


@pytest.fixture(autouse=True)
def clean_test_environment(monkeypatch: Any) -> Generator[None, Any, None]:
    """Clear workhealth environment variables around each test.

    Tests that exercise configuration set what they need through
    monkeypatch; nothing leaks in from the developer's shell.
    """
    for key in (
        "WORKHEALTH_DEBUG",
        "WORKHEALTH_LOG_LEVEL",
        "WORKHEALTH_DEFAULT_TIMEZONE",
        "WORKHEALTH_GOOGLE_ACCESS_TOKEN",
        "WORKHEALTH_USE_MOCK_DATA",
        "WORKHEALTH_ANTHROPIC_API_KEY",
        "ANTHROPIC_API_KEY",
        "WORKHEALTH_INSIGHTS_MODEL",
        "WORKHEALTH_INSIGHTS_TIMEOUT",
        "WORKHEALTH_INSIGHTS_CACHE_PATH",
        "WORKHEALTH_INSIGHTS_CACHE_MAX_ENTRIES",
        "WORKHEALTH_REQUEST_TIMEOUT",
    ):
        monkeypatch.delenv(key, raising=False)
    yield


@pytest.fixture(autouse=True)
async def cleanup_shared_http_clients() -> AsyncIterator[None]:
    """Close shared httpx clients after every test."""
    yield
    await close_all_clients()


@pytest.fixture
def raw_event_builder(
    tz: zoneinfo.ZoneInfo, test_day: datetime.date
) -> Callable[..., dict[str, Any]]:
    """Return a builder for Google Calendar style event resources.

    Returns:
        Callable with signature
        builder(start="09:00", end="10:00", summary="Meeting", attendees=1, **extra) -> dict

        Times are local wall-clock times on ``test_day`` in ``tz``. Extra
        keyword arguments are merged into the resource, so ``status``,
        ``transparency`` or ``recurringEventId`` can be set directly.
    """
    counter = {"n": 0}

    def builder(
        start: str = "09:00",
        end: str = "10:00",
        summary: str = "Meeting",
        attendees: Optional[int] = 1,
        **extra: Any,
    ) -> dict[str, Any]:
        counter["n"] += 1
        start_dt = datetime.datetime.combine(
            test_day, datetime.time.fromisoformat(start), tzinfo=tz
        )
        end_dt = datetime.datetime.combine(test_day, datetime.time.fromisoformat(end), tzinfo=tz)
        event: dict[str, Any] = {
            "id": f"evt-{counter['n']}",
            "summary": summary,
            "status": "confirmed",
            "start": {"dateTime": start_dt.isoformat()},
            "end": {"dateTime": end_dt.isoformat()},
        }
        if attendees:
            event["attendees"] = [
                {"email": f"person{i}@example.com"} for i in range(attendees)
            ]
        event.update(extra)
        return event

    return builder


@pytest.fixture
def schedule_builder(
    tz: zoneinfo.ZoneInfo, raw_event_builder: Callable[..., dict[str, Any]]
) -> Callable[..., NormalizedSchedule]:
    """Return a builder turning ``(start, end)`` pairs into a NormalizedSchedule.

    Each item is either ``("09:00", "10:00")`` or
    ``("09:00", "10:00", "Sprint Planning", 3)`` with a title and attendee count.
    """

    def builder(*slots: tuple) -> NormalizedSchedule:
        raw = []
        for slot in slots:
            start, end = slot[0], slot[1]
            summary = slot[2] if len(slot) > 2 else f"Meeting {start}"
            attendees = slot[3] if len(slot) > 3 else 1
            raw.append(raw_event_builder(start, end, summary=summary, attendees=attendees))
        return normalize_events(raw, tz)

    return builder


@pytest.fixture
def event_builder(
    tz: zoneinfo.ZoneInfo, test_day: datetime.date
) -> Callable[..., CalendarEvent]:
    """Return a builder for CalendarEvent instances on ``test_day``."""

    def builder(
        start: str,
        end: str,
        summary: str = "Meeting",
        attendee_count: int = 1,
    ) -> CalendarEvent:
        return CalendarEvent(
            id=f"{start}-{end}",
            summary=summary,
            start=datetime.datetime.combine(
                test_day, datetime.time.fromisoformat(start), tzinfo=tz
            ),
            end=datetime.datetime.combine(test_day, datetime.time.fromisoformat(end), tzinfo=tz),
            attendee_count=attendee_count,
        )

    return builder
