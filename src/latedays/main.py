"""Application entry point for the GitLab late-day calculator."""

from __future__ import annotations

import logging
import sys
from typing import Optional, Sequence

from .aggregator import collect_late_days
from .cli import parse_args
from .config import load_config
from .deadline import compute_effective_deadline
from .errors import (
    ApiError,
    AuthenticationError,
    ConfigurationError,
    DeadlineError,
    ReportError,
    RosterError,
)
from .gitlab_client import GitLabClient
from .report import build_rows, default_output_path, format_failure_summary, write_report
from .roster import read_roster, resolve_roster

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_UNEXPECTED_ERROR = 1
EXIT_CONFIGURATION_ERROR = 2
EXIT_AUTHENTICATION_ERROR = 3
EXIT_API_ERROR = 4
EXIT_ROSTER_ERROR = 5
EXIT_DEADLINE_ERROR = 6
EXIT_REPORT_ERROR = 7


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def orchestrate_late_days(argv: Optional[Sequence[str]] = None) -> int:
    """Run the late-day workflow and return a process exit code.

    Roster and deadline problems are reported before any request is sent to
    GitLab. Entries whose repository cannot be read are written to the CSV as
    failures and listed on stderr; they do not change the exit code.

    Exit codes:
        0: Success.
        1: Unexpected runtime error.
        2: Configuration or argument error.
        3: Token missing, unreadable, or rejected by GitLab.
        4: Unexpected GitLab API response.
        5: Roster unreadable or malformed.
        6: Due date malformed or ambiguous.
        7: Output file could not be written.
    """
    try:
        args = parse_args(argv)
        _configure_logging(args.verbose)

        config = load_config(
            designation=args.designation,
            group_name=args.group_name,
            due_date_time=args.due_date_time,
            tolerance_minutes=args.tolerance_minutes,
            roster_file=args.roster_file,
            token_file=args.token_file,
            gitlab_url=args.gitlab_url,
            namespace=args.namespace,
            timezone=args.timezone,
            max_workers=args.jobs,
        )

        deadline = compute_effective_deadline(
            config.due_date_time,
            config.tolerance_minutes,
            config.timezone,
        )
        entries = resolve_roster(
            config.designation,
            config.group_name,
            read_roster(config.roster_file),
        )

        print(
            f"Computing late days for {len(entries)} roster entries "
            f"(effective deadline {deadline.instant.isoformat()})..."
        )

        gitlab_client = GitLabClient(config=config)
        outcomes = collect_late_days(
            entries,
            deadline,
            gitlab_client,
            max_workers=config.max_workers,
        )

        output_path = args.output or default_output_path(config.group_name, config.designation)
        rows = build_rows(
            outcomes,
            per_member=args.per_member,
            failed_marker=args.failed_marker,
            omit_failed=args.omit_failed,
        )
        write_report(output_path, rows)
        print(f"Wrote {len(rows)} lines to {output_path}")

        summary = format_failure_summary(outcomes)
        if summary:
            print(summary, file=sys.stderr)

        return EXIT_SUCCESS
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_CONFIGURATION_ERROR
    except AuthenticationError as exc:
        print(f"Authentication error: {exc}", file=sys.stderr)
        return EXIT_AUTHENTICATION_ERROR
    except RosterError as exc:
        print(f"Roster error: {exc}", file=sys.stderr)
        return EXIT_ROSTER_ERROR
    except DeadlineError as exc:
        print(f"Deadline error: {exc}", file=sys.stderr)
        return EXIT_DEADLINE_ERROR
    except ApiError as exc:
        print(f"GitLab API error: {exc}", file=sys.stderr)
        return EXIT_API_ERROR
    except ReportError as exc:
        print(f"Output error: {exc}", file=sys.stderr)
        return EXIT_REPORT_ERROR
    except Exception as exc:
        logger.exception("Unexpected failure")
        print(f"Unexpected error: {exc}", file=sys.stderr)
        return EXIT_UNEXPECTED_ERROR


def main() -> None:
    """Console-script entry point."""
    raise SystemExit(orchestrate_late_days())


if __name__ == "__main__":
    main()
