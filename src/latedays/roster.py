"""Roster parsing and repository-name resolution.

Each roster line names either a single student or the members of a group.
Repository names follow the course convention:

- single student: ``{group_name}-{designation}-{username}``
- group:          ``{group_name}-{designation}-g{line_index + 1}``

``line_index`` is the 1-based position of the line in the file, counting blank
lines, so a group on line 8 owns repository suffix ``g9``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Union

from .errors import EmptyRosterLineError, RosterReadError
from .models import RosterEntry

logger = logging.getLogger(__name__)


def read_roster(path: Union[str, Path]) -> str:
    """Read the roster file as text.

    Raises:
        RosterReadError: If the file is missing, unreadable, or not UTF-8.
    """
    try:
        return Path(path).read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as exc:
        raise RosterReadError(f"Unable to read roster file '{path}': {exc}") from exc


def _repository_id(designation: str, group_name: str, line_index: int, usernames: List[str]) -> str:
    if len(usernames) == 1:
        return f"{group_name}-{designation}-{usernames[0]}"
    return f"{group_name}-{designation}-{_group_label(line_index)}"


def _group_label(line_index: int) -> str:
    return f"g{line_index + 1}"


def resolve_roster(designation: str, group_name: str, roster_text: str) -> List[RosterEntry]:
    """Parse roster text into ordered entries with resolved repository names.

    Blank lines are skipped but still consume a line index. A line that is not
    blank yet has no usernames after trimming (for example ``" , ,"``) is an
    error rather than a skipped line.

    Raises:
        EmptyRosterLineError: If a non-blank line yields no usernames.
    """
    entries: List[RosterEntry] = []

    # Only "\n" delimits lines; \v, \f, \x85 and \u2028 stay inside a line.
    for line_index, line in enumerate(roster_text.split("\n"), start=1):
        if not line.strip():
            continue

        usernames = [field.strip() for field in line.split(",") if field.strip()]
        if not usernames:
            raise EmptyRosterLineError(line_index)

        identity = usernames[0] if len(usernames) == 1 else _group_label(line_index)
        entries.append(
            RosterEntry(
                line_index=line_index,
                usernames=tuple(usernames),
                repository_id=_repository_id(designation, group_name, line_index, usernames),
                identity=identity,
            )
        )

    logger.info(
        "Resolved roster",
        extra={
            "entries": len(entries),
            "groups": sum(1 for entry in entries if entry.is_group),
        },
    )
    return entries
