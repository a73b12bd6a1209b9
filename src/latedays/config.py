"""Configuration parsing and validation for the GitLab late-day calculator."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union
from urllib.parse import urlparse
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .errors import AuthenticationError, ConfigurationError

DEFAULT_GITLAB_URL = "https://git.uwaterloo.ca"
DEFAULT_TIMEZONE = "America/Toronto"
DEFAULT_MAX_WORKERS = 4
MAX_WORKERS_LIMIT = 16


@dataclass(frozen=True)
class Config:
    """Validated runtime settings used by the late-day calculator."""

    designation: str
    group_name: str
    namespace: str
    due_date_time: str
    tolerance_minutes: int
    roster_file: str
    gitlab_url: str
    timezone: ZoneInfo
    max_workers: int = DEFAULT_MAX_WORKERS
    token: str = field(default="", repr=False)


def read_token_file(path: Union[str, Path]) -> str:
    """Read a GitLab access token from a plain-text file.

    Raises:
        AuthenticationError: If the file cannot be read or holds no token.
    """
    try:
        token = Path(path).read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as exc:
        raise AuthenticationError(f"Unable to read token from file '{path}'.") from exc

    if not token:
        raise AuthenticationError(f"Token file '{path}' is empty.")

    return token


def load_timezone(name: str) -> ZoneInfo:
    """Resolve an IANA timezone name.

    Raises:
        ConfigurationError: If the name is unknown to ``zoneinfo``.
    """
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigurationError(f"Unknown timezone '{name}'.") from exc


def load_config(
    designation: str,
    group_name: str,
    due_date_time: str,
    tolerance_minutes: int,
    roster_file: str,
    token_file: str,
    gitlab_url: str = DEFAULT_GITLAB_URL,
    namespace: Optional[str] = None,
    timezone: str = DEFAULT_TIMEZONE,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> Config:
    """Build and validate application configuration.

    Args:
        designation: Assignment designation, for example ``a1``.
        group_name: Course group name, for example ``ece459-1231``.
        due_date_time: Civil due date/time, ``YYYY-MM-DD HH:MM``.
        tolerance_minutes: Non-negative grace period in minutes.
        roster_file: Path to the roster CSV.
        token_file: Path to a file containing the GitLab access token.
        gitlab_url: Base URL of the GitLab instance.
        namespace: GitLab namespace holding the repositories; defaults to
            ``group_name``.
        timezone: IANA name of the zone the due date is interpreted in.
        max_workers: Number of concurrent repository lookups.

    Returns:
        A validated ``Config`` instance.

    Raises:
        ConfigurationError: If any value is missing or out of range.
        AuthenticationError: If the token file is unreadable or empty.
    """
    if not designation.strip():
        raise ConfigurationError("Invalid value for 'designation': expected a non-empty string.")

    if not group_name.strip():
        raise ConfigurationError("Invalid value for 'group_name': expected a non-empty string.")

    if tolerance_minutes < 0:
        raise ConfigurationError(
            "Invalid value for 'tolerance_minutes': expected an integer of at least 0."
        )

    if not 1 <= max_workers <= MAX_WORKERS_LIMIT:
        raise ConfigurationError(
            f"Invalid value for 'max_workers': expected an integer between 1 and {MAX_WORKERS_LIMIT}."
        )

    parsed_url = urlparse(gitlab_url)
    if parsed_url.scheme not in ("http", "https") or not parsed_url.netloc:
        raise ConfigurationError(f"Invalid GitLab URL '{gitlab_url}': expected http(s)://host.")

    zone = load_timezone(timezone)
    token = read_token_file(token_file)

    return Config(
        designation=designation.strip(),
        group_name=group_name.strip(),
        namespace=(namespace or group_name).strip().strip("/"),
        due_date_time=due_date_time,
        tolerance_minutes=tolerance_minutes,
        roster_file=roster_file,
        gitlab_url=gitlab_url.rstrip("/"),
        timezone=zone,
        max_workers=max_workers,
        token=token,
    )
