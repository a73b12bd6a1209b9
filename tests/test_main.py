"""Tests for application orchestration in the main module."""

import sys
from datetime import datetime, timedelta
from pathlib import Path
from unittest.mock import Mock, patch
from zoneinfo import ZoneInfo

import pytest

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from latedays.errors import ApiError, AuthenticationError, FetchError
from latedays.main import orchestrate_late_days
from latedays.models import FetchErrorKind

TORONTO = ZoneInfo("America/Toronto")
DEADLINE = datetime(2023, 1, 24, 21, 30, tzinfo=TORONTO)


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    """Create roster and token files and run inside a scratch directory."""
    roster = tmp_path / "students.csv"
    roster.write_text("alice\nbob\n\ncarol,dave\n", encoding="utf-8")
    token = tmp_path / "token.git"
    token.write_text("glpat-secret", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    return tmp_path


def _argv(workspace, *extra):
    return [
        "a1",
        "ece459-1231",
        "2023-01-24 21:00",
        "30",
        str(workspace / "students.csv"),
        str(workspace / "token.git"),
        *extra,
    ]


def _fake_client(outcomes):
    client = Mock()

    def latest_commit_timestamp(repository_id):
        outcome = outcomes[repository_id]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    client.latest_commit_timestamp.side_effect = latest_commit_timestamp
    return client


def test_orchestrate_late_days_success_writes_csv(workspace, capsys):
    """Verify a full run writes one line per roster entry in roster order."""
    client = _fake_client(
        {
            "ece459-1231-a1-alice": DEADLINE + timedelta(hours=25),
            "ece459-1231-a1-bob": DEADLINE - timedelta(minutes=5),
            "ece459-1231-a1-g5": DEADLINE + timedelta(hours=2),
        }
    )

    with patch("latedays.main.GitLabClient", return_value=client) as client_ctor_mock:
        exit_code = orchestrate_late_days(_argv(workspace))

    assert exit_code == 0
    config = client_ctor_mock.call_args.kwargs["config"]
    assert config.namespace == "ece459-1231"
    output = workspace / "ece459-1231-a1-latedays.csv"
    assert output.read_text(encoding="utf-8") == "alice,2\nbob,0\ng5,1\n"
    assert "Wrote 3 lines" in capsys.readouterr().out


def test_orchestrate_late_days_per_member_output(workspace):
    """Verify --per-member writes one line per student as the original tool did."""
    client = _fake_client(
        {
            "ece459-1231-a1-alice": DEADLINE,
            "ece459-1231-a1-bob": DEADLINE,
            "ece459-1231-a1-g5": DEADLINE + timedelta(hours=30),
        }
    )

    with patch("latedays.main.GitLabClient", return_value=client):
        exit_code = orchestrate_late_days(_argv(workspace, "--per-member", "--output", "out.csv"))

    assert exit_code == 0
    assert (workspace / "out.csv").read_text(encoding="utf-8") == "alice,0\nbob,0\ncarol,2\ndave,2\n"


def test_orchestrate_late_days_partial_failure_still_succeeds(workspace, capsys):
    """Verify a missing repository is written with the marker and reported."""
    client = _fake_client(
        {
            "ece459-1231-a1-alice": DEADLINE,
            "ece459-1231-a1-bob": FetchError(FetchErrorKind.NOT_FOUND, "missing", status_code=404),
            "ece459-1231-a1-g5": DEADLINE,
        }
    )

    with patch("latedays.main.GitLabClient", return_value=client):
        exit_code = orchestrate_late_days(_argv(workspace, "--failed-marker", "MISSING"))

    assert exit_code == 0
    output = workspace / "ece459-1231-a1-latedays.csv"
    assert output.read_text(encoding="utf-8") == "alice,0\nbob,MISSING\ng5,0\n"
    assert "bob (bob): not-found" in capsys.readouterr().err


def test_orchestrate_late_days_is_idempotent(workspace):
    """Verify two runs against unchanged state produce identical bytes."""
    outcomes = {
        "ece459-1231-a1-alice": DEADLINE + timedelta(hours=49),
        "ece459-1231-a1-bob": FetchError(FetchErrorKind.EMPTY_REPOSITORY, "empty"),
        "ece459-1231-a1-g5": DEADLINE + timedelta(seconds=1),
    }

    with patch("latedays.main.GitLabClient", return_value=_fake_client(outcomes)):
        assert orchestrate_late_days(_argv(workspace, "--output", "first.csv")) == 0
    with patch("latedays.main.GitLabClient", return_value=_fake_client(outcomes)):
        assert orchestrate_late_days(_argv(workspace, "--output", "second.csv")) == 0

    assert (workspace / "first.csv").read_bytes() == (workspace / "second.csv").read_bytes()


def test_orchestrate_late_days_unauthorized_writes_nothing(workspace):
    """Verify an unauthorized token aborts with exit code 3 and no output file."""
    client = _fake_client(
        {
            "ece459-1231-a1-alice": DEADLINE,
            "ece459-1231-a1-bob": FetchError(FetchErrorKind.UNAUTHORIZED, "401", status_code=401),
            "ece459-1231-a1-g5": DEADLINE,
        }
    )

    with patch("latedays.main.GitLabClient", return_value=client):
        exit_code = orchestrate_late_days(_argv(workspace))

    assert exit_code == 3
    assert not (workspace / "ece459-1231-a1-latedays.csv").exists()


def test_orchestrate_late_days_malformed_deadline_skips_network(workspace, capsys):
    """Verify deadline errors exit with code 6 before any client is built."""
    argv = _argv(workspace)
    argv[2] = "2023-01-24 9pm"

    with patch("latedays.main.GitLabClient") as client_ctor_mock:
        exit_code = orchestrate_late_days(argv)

    assert exit_code == 6
    client_ctor_mock.assert_not_called()
    assert "Deadline error" in capsys.readouterr().err


def test_orchestrate_late_days_missing_roster_returns_roster_exit_code(workspace):
    """Verify unreadable rosters exit with code 5 before any client is built."""
    argv = _argv(workspace)
    argv[4] = str(workspace / "missing.csv")

    with patch("latedays.main.GitLabClient") as client_ctor_mock:
        exit_code = orchestrate_late_days(argv)

    assert exit_code == 5
    client_ctor_mock.assert_not_called()


def test_orchestrate_late_days_missing_token_returns_auth_exit_code(workspace):
    """Verify missing token files return the authentication exit code."""
    argv = _argv(workspace)
    argv[5] = str(workspace / "missing.token")

    assert orchestrate_late_days(argv) == 3


def test_orchestrate_late_days_unexpected_response_for_one_entry_keeps_batch(workspace, capsys):
    """Verify one unexpected GitLab answer is reported without losing other results."""
    client = _fake_client(
        {
            "ece459-1231-a1-alice": ApiError("GitLab API request failed: returned 422"),
            "ece459-1231-a1-bob": DEADLINE,
            "ece459-1231-a1-g5": DEADLINE + timedelta(hours=3),
        }
    )

    with patch("latedays.main.GitLabClient", return_value=client):
        exit_code = orchestrate_late_days(_argv(workspace))

    assert exit_code == 0
    output = workspace / "ece459-1231-a1-latedays.csv"
    assert output.read_text(encoding="utf-8") == "alice,\nbob,0\ng5,1\n"
    assert "alice (alice): unexpected-response" in capsys.readouterr().err


def test_orchestrate_late_days_api_error_returns_api_exit_code(workspace):
    """Verify API errors escaping collection return the API error exit code."""
    with patch("latedays.main.GitLabClient"), patch(
        "latedays.main.collect_late_days", side_effect=ApiError("bad payload")
    ):
        exit_code = orchestrate_late_days(_argv(workspace))

    assert exit_code == 4


def test_orchestrate_late_days_config_error_returns_config_exit_code(workspace):
    """Verify invalid configuration returns the configuration exit code."""
    assert orchestrate_late_days(_argv(workspace, "--timezone", "Mars/Olympus")) == 2


def test_orchestrate_late_days_auth_error_from_load_config():
    """Verify authentication failures during config loading map to exit code 3."""
    args = Mock(verbose=False)

    with patch("latedays.main.parse_args", return_value=args), patch(
        "latedays.main.load_config",
        side_effect=AuthenticationError("Unable to read token."),
    ):
        exit_code = orchestrate_late_days()

    assert exit_code == 3


def test_orchestrate_late_days_unexpected_error_returns_generic_exit_code():
    """Verify unexpected exceptions are mapped to the generic non-zero exit code."""
    with patch("latedays.main.parse_args", side_effect=RuntimeError("boom")):
        exit_code = orchestrate_late_days()

    assert exit_code == 1
