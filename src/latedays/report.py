"""CSV emission and console summaries for late-day results.

The output file is headerless, one ``identity,late_days`` line per roster entry
in roster order. Entries whose repository could not be read are kept with a
configurable marker in the late-day column unless explicitly omitted, so a
missing submission is never silently confused with zero late days.
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import List, Sequence, Tuple, Union

from .errors import ReportError
from .models import EntryOutcome, FailedEntry, LateDayResult

Row = Tuple[str, str]


def default_output_path(group_name: str, designation: str) -> str:
    """Return the conventional output file name for an assignment."""
    return f"{group_name}-{designation}-latedays.csv"


def build_rows(
    outcomes: Sequence[EntryOutcome],
    per_member: bool = False,
    failed_marker: str = "",
    omit_failed: bool = False,
) -> List[Row]:
    """Turn ordered outcomes into CSV rows.

    Args:
        outcomes: Results in roster order.
        per_member: Emit one row per group member (each carrying the group's
            late days) instead of one row per roster entry.
        failed_marker: Value written in the late-day column for failed entries.
        omit_failed: Leave failed entries out of the output entirely.
    """
    rows: List[Row] = []

    for outcome in outcomes:
        if isinstance(outcome, LateDayResult):
            value = str(outcome.late_days)
        elif omit_failed:
            continue
        else:
            value = failed_marker

        identities = outcome.usernames if per_member else (outcome.identity,)
        rows.extend((identity, value) for identity in identities)

    return rows


def write_report(path: Union[str, Path], rows: Sequence[Row]) -> None:
    """Write rows to a headerless CSV file.

    Raises:
        ReportError: If the file cannot be written.
    """
    try:
        with open(path, "w", encoding="utf-8", newline="") as handle:
            writer = csv.writer(handle, lineterminator="\n")
            writer.writerows(rows)
    except OSError as exc:
        raise ReportError(f"Unable to write late-day report '{path}': {exc}") from exc


def format_failure_summary(outcomes: Sequence[EntryOutcome]) -> str:
    """Describe entries whose latest commit could not be determined.

    Returns an empty string when every entry succeeded.
    """
    failures = [outcome for outcome in outcomes if isinstance(outcome, FailedEntry)]
    if not failures:
        return ""

    lines = [f"Could not determine late days for {len(failures)} of {len(outcomes)} entries:"]
    for failure in failures:
        members = ", ".join(failure.usernames)
        lines.append(f"  - {failure.identity} ({members}): {failure.reason.value}")

    return "\n".join(lines)
