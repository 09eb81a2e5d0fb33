"""Unit tests for exceptions, timezone helpers, logging and the shared HTTP client."""

import datetime
import logging
import zoneinfo

import httpx
import pytest

from workhealth.core.exceptions import (
    CacheReadError,
    ConfigurationError,
    InsightGenerationError,
    InvalidEventError,
    UpstreamFetchError,
    WorkHealthError,
)
from workhealth.core.http_client import (
    HEALTH_ERROR_THRESHOLD,
    build_request_headers,
    close_all_clients,
    get_client_health,
    get_shared_client,
    record_client_error,
    record_client_success,
)
from workhealth.core.logging_config import (
    CorrelationIdFilter,
    analysis_id_var,
    configure_logging,
    get_analysis_id,
    get_logging_status,
    new_analysis_id,
)
from workhealth.core.timezone_utils import (
    DEFAULT_TIMEZONE,
    day_window,
    get_default_timezone,
    normalize_timezone_name,
    resolve_timezone,
)

pytestmark = pytest.mark.unit


class TestExceptionHierarchy:
    """Test the exception hierarchy is properly structured."""

    def test_all_exceptions_inherit_from_base(self):
        """All custom exceptions should inherit from WorkHealthError."""
        for exc_class in (
            InvalidEventError,
            UpstreamFetchError,
            InsightGenerationError,
            CacheReadError,
            ConfigurationError,
        ):
            assert issubclass(exc_class, WorkHealthError)

    def test_invalid_event_keeps_id(self):
        """InvalidEventError carries the offending event id."""
        exc = InvalidEventError("bad", event_id="e1")
        assert str(exc) == "bad"
        assert exc.event_id == "e1"

    def test_upstream_defaults_to_retryable(self):
        """UpstreamFetchError is retryable unless stated otherwise."""
        exc = UpstreamFetchError("down")
        assert exc.retryable is True
        assert exc.status_code is None


class TestTimezoneUtils:
    """Tests for timezone helpers."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("America/Chicago", "America/Chicago"),
            ("pst", "America/Los_Angeles"),
            ("Z", "UTC"),
            ("Not/AZone", None),
            ("", None),
        ],
    )
    def test_normalize_timezone_name(self, name, expected):
        """Names and abbreviations resolve to IANA identifiers."""
        assert normalize_timezone_name(name) == expected

    def test_default_timezone_from_environment(self, monkeypatch):
        """WORKHEALTH_DEFAULT_TIMEZONE overrides the built-in default."""
        assert get_default_timezone() == DEFAULT_TIMEZONE
        monkeypatch.setenv("WORKHEALTH_DEFAULT_TIMEZONE", "Europe/London")
        assert get_default_timezone() == "Europe/London"

    def test_invalid_default_timezone_falls_back(self, monkeypatch):
        """Unknown configured zones fall back to the default."""
        monkeypatch.setenv("WORKHEALTH_DEFAULT_TIMEZONE", "Nowhere/Land")
        assert get_default_timezone() == DEFAULT_TIMEZONE

    def test_resolve_timezone(self):
        """None resolves to the default and bad names raise."""
        assert resolve_timezone(None) == zoneinfo.ZoneInfo(DEFAULT_TIMEZONE)
        assert resolve_timezone("UTC") == zoneinfo.ZoneInfo("UTC")
        with pytest.raises(ConfigurationError):
            resolve_timezone("Nowhere/Land")

    def test_day_window_on_dst_change(self):
        """The day DST ends in the US is 25 hours long."""
        tz = zoneinfo.ZoneInfo("America/New_York")

        start, end = day_window(datetime.date(2025, 11, 2), tz)

        assert end - start == datetime.timedelta(hours=25)
        assert start.tzinfo == datetime.timezone.utc


class TestLoggingConfig:
    """Tests for logging configuration and analysis ids."""

    def test_analysis_id_defaults(self):
        """Without an active analysis the placeholder id is used."""
        token = analysis_id_var.set("")
        try:
            assert get_analysis_id() == "no-analysis-id"
        finally:
            analysis_id_var.reset(token)

    def test_new_analysis_id(self):
        """A new id is activated in the current context."""
        token = analysis_id_var.set("")
        try:
            analysis_id = new_analysis_id()
            assert get_analysis_id() == analysis_id
            assert len(analysis_id) == 12
        finally:
            analysis_id_var.reset(token)

    def test_filter_stamps_records(self):
        """CorrelationIdFilter adds analysis_id to records."""
        record = logging.LogRecord("workhealth", logging.INFO, __file__, 1, "msg", None, None)
        token = analysis_id_var.set("abc123")
        try:
            assert CorrelationIdFilter().filter(record) is True
        finally:
            analysis_id_var.reset(token)
        assert record.analysis_id == "abc123"

    def test_configure_logging_levels(self):
        """Debug mode raises workhealth verbosity and quiets noisy libraries."""
        configure_logging(debug_mode=True)
        status = get_logging_status()

        assert status["workhealth"] == "DEBUG"
        assert status["httpx"] == "WARNING"
        assert status["anthropic"] == "WARNING"

        configure_logging(debug_mode=False)
        assert get_logging_status()["workhealth"] == "INFO"

    def test_env_forces_debug(self, monkeypatch):
        """WORKHEALTH_DEBUG overrides the debug_mode argument."""
        monkeypatch.setenv("WORKHEALTH_DEBUG", "1")
        configure_logging(debug_mode=False)
        assert get_logging_status()["workhealth"] == "DEBUG"
        configure_logging(force_debug=False)
        assert get_logging_status()["workhealth"] == "INFO"


class TestSharedHTTPClient:
    """Test shared HTTP client management."""

    async def test_reuses_client(self):
        """Same id gives the same client; close_all_clients closes it."""
        client1 = await get_shared_client("test_client")
        client2 = await get_shared_client("test_client")

        assert isinstance(client1, httpx.AsyncClient)
        assert client1 is client2

        await close_all_clients()
        assert client1.is_closed

    async def test_different_ids(self):
        """Different client ids create separate clients."""
        client1 = await get_shared_client("test_client_1")
        client2 = await get_shared_client("test_client_2")

        assert client1 is not client2

    async def test_unhealthy_client_is_recreated(self):
        """Repeated errors replace the client on next use."""
        client1 = await get_shared_client("flaky")
        for _ in range(HEALTH_ERROR_THRESHOLD):
            await record_client_error("flaky")

        client2 = await get_shared_client("flaky")

        assert client2 is not client1
        assert client1.is_closed
        assert get_client_health("flaky")["error_count"] == 0

    async def test_success_resets_errors(self):
        """A success clears the error count."""
        await get_shared_client("recovering")
        await record_client_error("recovering")
        await record_client_success("recovering")

        assert get_client_health("recovering")["error_count"] == 0

    def test_request_headers_carry_analysis_id(self):
        """X-Request-ID follows the active analysis."""
        token = analysis_id_var.set("abc123")
        try:
            headers = build_request_headers({"Authorization": "Bearer t"})
        finally:
            analysis_id_var.reset(token)

        assert headers["X-Request-ID"] == "abc123"
        assert headers["Authorization"] == "Bearer t"
        assert headers["Accept"] == "application/json"

    def test_request_headers_without_analysis(self):
        """No analysis means no X-Request-ID."""
        token = analysis_id_var.set("")
        try:
            assert "X-Request-ID" not in build_request_headers()
        finally:
            analysis_id_var.reset(token)
