"""Domain models for late-day computation.

The GitLab payload models intentionally capture only the subset of API fields
needed to find a repository's latest default-branch commit.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple, Union


class FetchErrorKind(Enum):
    """Classified reasons a repository lookup can fail."""

    NOT_FOUND = "not-found"
    EMPTY_REPOSITORY = "empty-repository"
    UNAUTHORIZED = "unauthorized"
    TRANSIENT_NETWORK = "transient-network"
    UNEXPECTED_RESPONSE = "unexpected-response"
    CANCELLED = "cancelled"


@dataclass(frozen=True, slots=True)
class RosterEntry:
    """One roster line resolved to its GitLab repository name."""

    line_index: int
    usernames: Tuple[str, ...]
    repository_id: str
    identity: str

    @property
    def is_group(self) -> bool:
        return len(self.usernames) > 1


@dataclass(frozen=True, slots=True)
class EffectiveDeadline:
    """Due date plus tolerance, as a timezone-aware instant."""

    instant: datetime


@dataclass(frozen=True, slots=True)
class CommitObservation:
    """Outcome of looking up one repository's latest commit."""

    repository_id: str
    timestamp: Optional[datetime] = None
    error: Optional[FetchErrorKind] = None
    detail: str = ""


@dataclass(frozen=True, slots=True)
class LateDayResult:
    """Late days charged to one roster entry."""

    identity: str
    late_days: int
    usernames: Tuple[str, ...]
    commit_timestamp: datetime


@dataclass(frozen=True, slots=True)
class FailedEntry:
    """A roster entry whose latest commit could not be determined."""

    identity: str
    reason: FetchErrorKind
    usernames: Tuple[str, ...]
    detail: str = ""


EntryOutcome = Union[LateDayResult, FailedEntry]


@dataclass(slots=True)
class Project:
    """Represents the minimal GitLab project data needed for a commit lookup."""

    id: int
    path_with_namespace: str
    default_branch: Optional[str]
    empty_repo: bool


@dataclass(slots=True)
class Branch:
    """Represents a GitLab branch and the timestamp of its head commit."""

    name: str
    default: bool
    commit_id: str
    committed_date: datetime
