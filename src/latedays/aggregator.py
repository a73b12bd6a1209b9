"""Late-day collection across a roster.

Repository lookups are independent, so they run on a small thread pool. The
results are written into index-tagged slots and returned in roster order,
whatever order the lookups complete in.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime
from typing import List, Optional, Protocol, Sequence

from .config import DEFAULT_MAX_WORKERS
from .errors import ApiError, AuthenticationError, FetchError
from .lateness import compute_late_days
from .models import (
    CommitObservation,
    EffectiveDeadline,
    EntryOutcome,
    FailedEntry,
    FetchErrorKind,
    LateDayResult,
    RosterEntry,
)

logger = logging.getLogger(__name__)


class RepositoryGateway(Protocol):
    """Anything that can report a repository's latest commit time."""

    def latest_commit_timestamp(self, repository_id: str) -> datetime: ...

    def cancel(self) -> None: ...


def observe_commit(gateway: RepositoryGateway, entry: RosterEntry) -> CommitObservation:
    """Look up one entry's latest commit, classifying recoverable failures.

    Raises:
        AuthenticationError: If GitLab rejects the access token.
    """
    try:
        timestamp = gateway.latest_commit_timestamp(entry.repository_id)
    except FetchError as exc:
        if exc.kind is FetchErrorKind.UNAUTHORIZED:
            raise AuthenticationError(str(exc)) from exc
        return CommitObservation(
            repository_id=entry.repository_id,
            error=exc.kind,
            detail=str(exc),
        )
    except ApiError as exc:
        return CommitObservation(
            repository_id=entry.repository_id,
            error=FetchErrorKind.UNEXPECTED_RESPONSE,
            detail=str(exc),
        )

    return CommitObservation(repository_id=entry.repository_id, timestamp=timestamp)


def evaluate_entry(
    entry: RosterEntry,
    deadline: EffectiveDeadline,
    gateway: RepositoryGateway,
) -> EntryOutcome:
    """Produce the late-day result (or failure record) for one roster entry."""
    observation = observe_commit(gateway, entry)

    if observation.timestamp is None:
        reason = observation.error or FetchErrorKind.EMPTY_REPOSITORY
        logger.warning(
            "Could not determine latest commit",
            extra={
                "identity": entry.identity,
                "repository_id": entry.repository_id,
                "reason": reason.value,
            },
        )
        return FailedEntry(
            identity=entry.identity,
            reason=reason,
            usernames=entry.usernames,
            detail=observation.detail,
        )

    late_days = compute_late_days(observation.timestamp, deadline)
    logger.info(
        "Last commit was on %s; due date was %s",
        observation.timestamp.astimezone(deadline.instant.tzinfo).isoformat(),
        deadline.instant.isoformat(),
        extra={"identity": entry.identity, "late_days": late_days},
    )
    return LateDayResult(
        identity=entry.identity,
        late_days=late_days,
        usernames=entry.usernames,
        commit_timestamp=observation.timestamp,
    )


def collect_late_days(
    entries: Sequence[RosterEntry],
    deadline: EffectiveDeadline,
    gateway: RepositoryGateway,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> List[EntryOutcome]:
    """Compute late days for every roster entry, preserving roster order.

    Missing, empty and unreachable repositories, and repositories GitLab
    answers for with an unexpected response, become ``FailedEntry`` records so
    one bad entry never blocks the rest of the batch. An unauthorized token
    cancels the gateway, which stops in-flight lookups at their next attempt or
    backoff, drops pending lookups, and aborts the whole run.

    Raises:
        AuthenticationError: If any lookup is rejected as unauthorized.
    """
    if not entries:
        return []

    outcomes: List[Optional[EntryOutcome]] = [None] * len(entries)

    executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="latedays")
    try:
        futures = {
            executor.submit(evaluate_entry, entry, deadline, gateway): index
            for index, entry in enumerate(entries)
        }
        for future in as_completed(futures):
            outcomes[futures[future]] = future.result()
    except AuthenticationError:
        logger.error("Access token rejected; cancelling outstanding repository lookups")
        gateway.cancel()
        raise
    finally:
        executor.shutdown(wait=True, cancel_futures=True)

    results = [outcome for outcome in outcomes if outcome is not None]
    failed = sum(1 for outcome in results if isinstance(outcome, FailedEntry))
    logger.info(
        "Collected late days",
        extra={"entries": len(results), "failed": failed},
    )
    return results
