"""Custom exception hierarchy for work health analysis.

This module provides specific exception types so callers can tell apart
bad calendar data (skipped), an unreachable event source (retryable),
insight generation failures (substituted with fallback insights) and
unreadable cache entries (treated as a miss).
"""

from __future__ import annotations

from typing import Optional


class WorkHealthError(Exception):
    """Base exception for all work health errors.

    All custom exceptions in the package inherit from this base class to
    enable centralized exception handling.
    """


class InvalidEventError(WorkHealthError):
    """A raw calendar event could not be turned into a CalendarEvent.

    Raised when:
    - start or end timestamps are missing or cannot be parsed
    - the event duration is zero or negative

    Never fatal for an analysis: the normalizer logs and skips the event.
    """

    def __init__(self, message: str, event_id: Optional[str] = None):
        super().__init__(message)
        self.event_id = event_id


class UpstreamFetchError(WorkHealthError):
    """The raw event source could not be reached.

    Raised when:
    - the calendar provider is unreachable or times out
    - the provider answers with a non-success HTTP status
    - the provider payload is not the expected JSON shape

    Propagated to the caller. No retries are performed here.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        retryable: bool = True,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.retryable = retryable


class InsightGenerationError(WorkHealthError):
    """The external insight generator failed.

    Raised when:
    - the API key is not configured
    - the language model API call fails or times out
    - the reply does not contain a well-formed insights document

    Caught at the insight boundary and replaced with fallback insights.
    """


class CacheReadError(WorkHealthError):
    """A cached insight entry is malformed or unreadable.

    Treated as a cache miss, never as a fatal error.
    """


class ConfigurationError(WorkHealthError):
    """Configuration values are missing or invalid.

    Raised when:
    - a timezone name is not a valid IANA identifier
    - the selected event source lacks required settings
    """
