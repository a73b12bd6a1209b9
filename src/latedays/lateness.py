"""Conversion of commit lateness into whole late days."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from .models import EffectiveDeadline

logger = logging.getLogger(__name__)

DAY = timedelta(hours=24)


def compute_late_days(commit_instant: datetime, deadline: EffectiveDeadline) -> int:
    """Return the number of late days charged for a commit.

    Business logic:
    - A commit at or before the effective deadline costs ``0`` days.
    - Otherwise every started 24-hour period past the deadline costs one day,
      measured on exact elapsed time rather than calendar dates
      (``24h`` late is ``1``, ``24h + 1s`` late is ``2``).

    Both instants are normalized to UTC first; subtracting two datetimes that
    share a ``ZoneInfo`` would otherwise compare wall-clock times.
    """
    delta = commit_instant.astimezone(timezone.utc) - deadline.instant.astimezone(timezone.utc)

    logger.debug(
        "Computed commit lateness",
        extra={
            "commit_instant": commit_instant.isoformat(),
            "deadline": deadline.instant.isoformat(),
            "late_seconds": delta.total_seconds(),
        },
    )

    if delta <= timedelta(0):
        return 0

    return -(-delta // DAY)
