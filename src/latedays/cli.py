"""Command-line argument parsing for the GitLab late-day calculator."""

from __future__ import annotations

import argparse
from typing import Optional, Sequence

from .config import DEFAULT_GITLAB_URL, DEFAULT_MAX_WORKERS, DEFAULT_TIMEZONE, MAX_WORKERS_LIMIT


def _non_negative_int(value: str) -> int:
    """Parse and validate a non-negative integer CLI value.

    Raises:
        argparse.ArgumentTypeError: If value is not an integer of at least 0.
    """
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("must be an integer") from exc

    if parsed < 0:
        raise argparse.ArgumentTypeError("must be 0 or greater")

    return parsed


def _worker_count(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("must be an integer") from exc

    if not 1 <= parsed <= MAX_WORKERS_LIMIT:
        raise argparse.ArgumentTypeError(f"must be between 1 and {MAX_WORKERS_LIMIT}")

    return parsed


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments for late-day computation.

    Returns:
        Parsed CLI arguments: the six positional inputs plus optional
        connection, concurrency and output settings.
    """
    parser = argparse.ArgumentParser(
        prog="gitlab-latedays",
        description=(
            "Compute late days used by each student or group from the latest "
            "commit on their GitLab repository's default branch."
        ),
        epilog='Example: gitlab-latedays a1 ece459-1231 "2023-01-27 23:59" 60 students.csv token.git',
    )

    parser.add_argument("designation", help="Assignment designation, for example 'a1'.")
    parser.add_argument("group_name", help="GitLab group name, for example 'ece459-1231'.")
    parser.add_argument("due_date_time", help="Due date/time as 'YYYY-MM-DD HH:MM'.")
    parser.add_argument(
        "tolerance_minutes",
        type=_non_negative_int,
        help="Grace period in minutes added to the due date.",
    )
    parser.add_argument("roster_file", help="CSV roster: one student or comma-separated group per line.")
    parser.add_argument("token_file", help="File containing a GitLab access token.")

    parser.add_argument(
        "--gitlab-url",
        default=DEFAULT_GITLAB_URL,
        help=f"GitLab instance base URL (default: {DEFAULT_GITLAB_URL}).",
    )
    parser.add_argument(
        "--namespace",
        default=None,
        help="GitLab namespace holding the repositories (default: group_name).",
    )
    parser.add_argument(
        "--timezone",
        default=DEFAULT_TIMEZONE,
        help=f"IANA timezone the due date is interpreted in (default: {DEFAULT_TIMEZONE}).",
    )
    parser.add_argument(
        "--jobs",
        type=_worker_count,
        default=DEFAULT_MAX_WORKERS,
        help=f"Concurrent repository lookups (default: {DEFAULT_MAX_WORKERS}).",
    )
    parser.add_argument(
        "--output",
        default=None,
        help="Output CSV path (default: <group_name>-<designation>-latedays.csv).",
    )
    parser.add_argument(
        "--per-member",
        action="store_true",
        help="Write one line per group member instead of one line per group.",
    )
    parser.add_argument(
        "--failed-marker",
        default="",
        help="Late-day value written for entries whose repository could not be read (default: empty).",
    )
    parser.add_argument(
        "--omit-failed",
        action="store_true",
        help="Leave entries whose repository could not be read out of the CSV.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )

    return parser.parse_args(argv)
