"""Raw calendar event sources.

Every source implements the ``EventSource`` protocol and returns raw
provider-shaped event dicts for one local day. Live and sample data are
interchangeable strategies chosen at wiring time.
"""

from __future__ import annotations

import datetime
import json
import logging
from pathlib import Path
from typing import Any, Optional, Protocol

import httpx

from ..core.exceptions import ConfigurationError, InvalidEventError, UpstreamFetchError
from ..core.http_client import (
    build_request_headers,
    get_shared_client,
    record_client_error,
    record_client_success,
)
from ..core.timezone_utils import day_window
from .normalizer import parse_instant

logger = logging.getLogger(__name__)

GOOGLE_EVENTS_URL = "https://www.googleapis.com/calendar/v3/calendars/primary/events"
GOOGLE_MAX_RESULTS = 2500
# Guards against a provider that keeps returning page tokens
MAX_PAGES = 20

# Sample day: (id, title, start hh:mm, end hh:mm, attendees)
SAMPLE_MEETINGS: tuple[tuple[str, str, str, str, tuple[str, ...]], ...] = (
    ("sample-1", "Sprint Planning", "09:00", "10:00", ("Sarah Chen", "Mike Johnson", "Lisa Wang")),
    ("sample-2", "Product Design Review", "10:30", "11:30", ("Design Team", "Product Manager")),
    ("sample-3", "Client Check-in", "12:00", "12:30", ("Client Team", "Account Manager")),
    ("sample-4", "1:1 with Manager", "14:00", "14:30", ("Direct Manager",)),
    ("sample-5", "Engineering Standup", "15:00", "15:15", ("Engineering Team",)),
    ("sample-6", "Strategy Discussion", "16:00", "17:00", ("Leadership Team",)),
)


class EventSource(Protocol):
    """Provider of raw events for one calendar day."""

    async def fetch_events(
        self, day: datetime.date, tz: datetime.tzinfo
    ) -> list[dict[str, Any]]:
        """Return raw events overlapping ``day`` in ``tz``.

        Raises:
            UpstreamFetchError: If the source cannot be read
        """
        ...


class GoogleCalendarSource:
    """Fetch events from the Google Calendar API with a bearer token.

    A single attempt is made per page; retry policy belongs to the caller.
    """

    def __init__(
        self,
        access_token: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
        calendar_url: str = GOOGLE_EVENTS_URL,
    ):
        """Initialize the source.

        Args:
            access_token: OAuth access token with calendar.readonly scope
            client: HTTP client to use (defaults to the shared client)
            timeout: Per-request timeout in seconds
            calendar_url: Events collection URL
        """
        self.access_token = access_token
        self._client = client
        self.timeout = timeout
        self.calendar_url = calendar_url

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is not None:
            return self._client
        return await get_shared_client("google-calendar")

    async def _fetch_page(
        self, client: httpx.AsyncClient, params: dict[str, Any]
    ) -> dict[str, Any]:
        headers = build_request_headers({"Authorization": f"Bearer {self.access_token}"})

        try:
            response = await client.get(
                self.calendar_url, params=params, headers=headers, timeout=self.timeout
            )
        except httpx.TimeoutException as e:
            await record_client_error("google-calendar")
            raise UpstreamFetchError(f"Calendar request timed out: {e}") from e
        except httpx.HTTPError as e:
            await record_client_error("google-calendar")
            raise UpstreamFetchError(f"Calendar request failed: {e}") from e

        if response.status_code != 200:
            await record_client_error("google-calendar")
            # Auth problems will not fix themselves on retry
            retryable = response.status_code not in (400, 401, 403, 404)
            raise UpstreamFetchError(
                f"Calendar API returned HTTP {response.status_code}",
                status_code=response.status_code,
                retryable=retryable,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise UpstreamFetchError(
                "Calendar API returned invalid JSON", status_code=response.status_code
            ) from e

        if not isinstance(payload, dict):
            raise UpstreamFetchError(
                "Calendar API returned unexpected payload", status_code=response.status_code
            )

        await record_client_success("google-calendar")
        return payload

    async def fetch_events(
        self, day: datetime.date, tz: datetime.tzinfo
    ) -> list[dict[str, Any]]:
        """Fetch all timed and all-day events for ``day``, following pagination.

        Args:
            day: Local calendar day
            tz: Caller's timezone

        Returns:
            Raw Google event resources

        Raises:
            UpstreamFetchError: Transport failure or non-200 response
        """
        start_utc, end_utc = day_window(day, tz)
        params: dict[str, Any] = {
            "timeMin": start_utc.isoformat().replace("+00:00", "Z"),
            "timeMax": end_utc.isoformat().replace("+00:00", "Z"),
            "singleEvents": "true",
            "orderBy": "startTime",
            "maxResults": GOOGLE_MAX_RESULTS,
            "showDeleted": "false",
        }
        tz_name = getattr(tz, "key", None)
        if tz_name:
            params["timeZone"] = tz_name

        client = await self._get_client()
        events: list[dict[str, Any]] = []

        for page in range(MAX_PAGES):
            payload = await self._fetch_page(client, params)
            items = payload.get("items") or []
            events.extend(item for item in items if isinstance(item, dict))

            next_token = payload.get("nextPageToken")
            if not next_token:
                break
            params["pageToken"] = next_token
            logger.debug("Following calendar page %d", page + 2)
        else:
            logger.warning("Stopped after %d calendar pages", MAX_PAGES)

        logger.info("Fetched %d calendar events for %s", len(events), day.isoformat())
        return events


class SampleDaySource:
    """Built-in sample day used for demos and when live data is disabled."""

    async def fetch_events(
        self, day: datetime.date, tz: datetime.tzinfo
    ) -> list[dict[str, Any]]:
        events = []
        for event_id, title, start, end, attendees in SAMPLE_MEETINGS:
            start_dt = datetime.datetime.combine(
                day, datetime.time.fromisoformat(start), tzinfo=tz
            )
            end_dt = datetime.datetime.combine(day, datetime.time.fromisoformat(end), tzinfo=tz)
            events.append(
                {
                    "id": event_id,
                    "summary": title,
                    "status": "confirmed",
                    "start": {"dateTime": start_dt.isoformat()},
                    "end": {"dateTime": end_dt.isoformat()},
                    "attendees": [{"displayName": name} for name in attendees],
                }
            )
        logger.debug("Generated %d sample events for %s", len(events), day.isoformat())
        return events


def _event_bounds(
    item: dict[str, Any], tz: datetime.tzinfo
) -> Optional[tuple[datetime.datetime, datetime.datetime]]:
    """Return the (start, end) of a raw event in ``tz``, or None if unparseable.

    All-day events span local midnight of ``start.date`` to ``end.date``.
    """
    bounds = []
    for which in ("start", "end"):
        boundary = item.get(which)
        if not isinstance(boundary, dict):
            return None
        if boundary.get("dateTime"):
            try:
                bounds.append(parse_instant(boundary, tz, item.get("id"), which))
            except InvalidEventError:
                return None
        elif boundary.get("date"):
            try:
                all_day = datetime.date.fromisoformat(str(boundary["date"]))
            except ValueError:
                return None
            bounds.append(datetime.datetime.combine(all_day, datetime.time.min, tzinfo=tz))
        else:
            return None
    return bounds[0], bounds[1]


class JsonFileSource:
    """Read raw events from a JSON file.

    The file holds either a list of events or a Google-style ``{"items": [...]}``
    document, possibly spanning several days. Only events overlapping the
    requested local day are returned. Events whose times cannot be read are
    passed through so the normalizer reports them as skipped.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    async def fetch_events(
        self, day: datetime.date, tz: datetime.tzinfo
    ) -> list[dict[str, Any]]:
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except OSError as e:
            raise UpstreamFetchError(f"Cannot read events file {self.path}: {e}") from e
        except json.JSONDecodeError as e:
            raise UpstreamFetchError(
                f"Events file {self.path} is not valid JSON: {e}", retryable=False
            ) from e

        if isinstance(payload, dict):
            payload = payload.get("items", [])
        if not isinstance(payload, list):
            raise UpstreamFetchError(
                f"Events file {self.path} must contain a list of events", retryable=False
            )

        window_start, window_end = day_window(day, tz)
        events = []
        for item in payload:
            if not isinstance(item, dict):
                continue
            bounds = _event_bounds(item, tz)
            if bounds is not None and not (bounds[0] < window_end and bounds[1] > window_start):
                continue
            events.append(item)

        logger.debug(
            "Read %d of %d events from %s for %s",
            len(events),
            len(payload),
            self.path,
            day.isoformat(),
        )
        return events


def build_event_source(config: dict[str, Any]) -> EventSource:
    """Pick the event source for a config dict.

    Args:
        config: Output of ``ConfigManager.load_full_config`` plus optional
            ``events_file`` override

    Returns:
        JsonFileSource when ``events_file`` is set, SampleDaySource when
        ``use_mock_data`` is set, otherwise GoogleCalendarSource

    Raises:
        ConfigurationError: When live data is selected without an access token
    """
    events_file = config.get("events_file")
    if events_file:
        return JsonFileSource(Path(events_file))

    if config.get("use_mock_data"):
        return SampleDaySource()

    token = config.get("google_access_token")
    if not token:
        raise ConfigurationError(
            "WORKHEALTH_GOOGLE_ACCESS_TOKEN is required unless sample data is enabled"
        )
    return GoogleCalendarSource(token, timeout=config.get("request_timeout", 30.0))
