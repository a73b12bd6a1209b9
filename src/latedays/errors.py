"""Custom exception types for the GitLab late-day calculator."""

from __future__ import annotations

from typing import Optional

from .models import FetchErrorKind


class LateDaysError(Exception):
    """Base exception for all late-day calculator errors."""


class ConfigurationError(LateDaysError):
    """Raised when runtime configuration values are missing or invalid."""


class AuthenticationError(LateDaysError):
    """Raised when the GitLab access token is unavailable or rejected."""


class ApiError(LateDaysError):
    """Raised when a GitLab API request fails or returns an unexpected response."""


class FetchError(ApiError):
    """Raised when a repository lookup fails in a way the caller can classify."""

    def __init__(self, kind: FetchErrorKind, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code


class RosterError(LateDaysError):
    """Raised when the roster cannot be read or contains an invalid line."""


class RosterReadError(RosterError):
    """Raised when the roster file cannot be read at all."""


class EmptyRosterLineError(RosterError):
    """Raised when a non-blank roster line has no usernames after trimming."""

    def __init__(self, line_index: int) -> None:
        super().__init__(f"Roster line {line_index} contains no usernames.")
        self.line_index = line_index


class DeadlineError(LateDaysError):
    """Raised when the due date cannot be turned into an effective deadline."""


class MalformedDateError(DeadlineError):
    """Raised when the due date/time does not match ``YYYY-MM-DD HH:MM``."""


class AmbiguousLocalTimeError(DeadlineError):
    """Raised when the due date/time is skipped or repeated by a DST transition."""


class ReportError(LateDaysError):
    """Raised when the late-day CSV cannot be written."""
