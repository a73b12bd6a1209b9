"""Effective-deadline computation.

The stated due date is a civil time (``YYYY-MM-DD HH:MM``) interpreted in an
explicit timezone. The UTC offset comes from the zone's rules for that calendar
date, never from the clock of the machine running the tool.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone, tzinfo

from .errors import AmbiguousLocalTimeError, ConfigurationError, MalformedDateError
from .models import EffectiveDeadline

DATE_TIME_FORMAT = "%Y-%m-%d %H:%M"
_DATE_TIME_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}")


def parse_due_date_time(value: str) -> datetime:
    """Parse a civil ``YYYY-MM-DD HH:MM`` string into a naive datetime.

    Raises:
        MalformedDateError: On wrong separators, missing zero padding,
            out-of-range fields, or trailing characters.
    """
    if not _DATE_TIME_PATTERN.fullmatch(value):
        raise MalformedDateError(
            f"Invalid due date/time '{value}': expected format YYYY-MM-DD HH:MM."
        )

    try:
        return datetime.strptime(value, DATE_TIME_FORMAT)
    except ValueError as exc:
        raise MalformedDateError(f"Invalid due date/time '{value}': {exc}.") from exc


def _localize(civil: datetime, zone: tzinfo) -> datetime:
    """Attach ``zone`` to a civil time, rejecting DST gaps and overlaps."""
    earlier = civil.replace(tzinfo=zone, fold=0)
    later = civil.replace(tzinfo=zone, fold=1)

    if earlier.utcoffset() != later.utcoffset():
        round_trip = earlier.astimezone(timezone.utc).astimezone(zone)
        if round_trip.replace(tzinfo=None) != civil:
            reason = "does not exist"
        else:
            reason = "occurs twice"
        raise AmbiguousLocalTimeError(
            f"Due date/time {civil:%Y-%m-%d %H:%M} {reason} in timezone {zone} "
            "because of a daylight-saving transition."
        )

    return earlier


def compute_effective_deadline(
    due_date_time: str,
    tolerance_minutes: int,
    zone: tzinfo,
) -> EffectiveDeadline:
    """Combine due date, tolerance and timezone into one deadline instant.

    Tolerance is added as exact elapsed minutes, so a grace window spanning a
    DST change is not stretched or shrunk by the offset change.

    Args:
        due_date_time: Civil due date/time, ``YYYY-MM-DD HH:MM``.
        tolerance_minutes: Non-negative grace period in minutes.
        zone: Timezone the civil time is interpreted in.

    Returns:
        The effective deadline, expressed in ``zone``.

    Raises:
        ConfigurationError: If ``tolerance_minutes`` is negative.
        MalformedDateError: If ``due_date_time`` is malformed.
        AmbiguousLocalTimeError: If the civil time falls in a DST gap or overlap.
    """
    if tolerance_minutes < 0:
        raise ConfigurationError(
            "Invalid value for 'tolerance_minutes': expected an integer of at least 0."
        )

    due = _localize(parse_due_date_time(due_date_time), zone)
    instant = due.astimezone(timezone.utc) + timedelta(minutes=tolerance_minutes)
    return EffectiveDeadline(instant=instant.astimezone(zone))
