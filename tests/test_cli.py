"""Tests for the timesheet command line."""

import pytest

from conftest import git, requires_git, sydney
from core.config import Settings
from core.gitlog import EventLog
from scripts.timesheet import flex_hours, main, resolve_initial_flex


def test_initial_flex_flag_wins():
    settings = Settings(repo_path=None, ssh_key_path=None, initial_flex="4")
    assert resolve_initial_flex(-1.5, settings) == -1.5


def test_initial_flex_from_environment():
    settings = Settings(repo_path=None, ssh_key_path=None, initial_flex="2.25")
    assert resolve_initial_flex(None, settings) == 2.25


def test_invalid_initial_flex_is_ignored(capsys):
    settings = Settings(repo_path=None, ssh_key_path=None, initial_flex="lots")

    assert resolve_initial_flex(None, settings) == 0.0
    assert "Ignoring invalid INITIAL_FLEX" in capsys.readouterr().err


def test_view_without_repo_path_fails(capsys):
    settings = Settings(repo_path=None, ssh_key_path=None, initial_flex=None)

    assert main(["view"], settings=settings) == 1
    assert "TIMESHEET_REPO_PATH" in capsys.readouterr().err


def test_record_without_key_fails(tmp_path, capsys):
    settings = Settings(repo_path=tmp_path, ssh_key_path=None, initial_flex=None)

    assert main(["in"], settings=settings) == 1
    assert "Failed to clock in" in capsys.readouterr().err


def test_subcommand_is_required():
    with pytest.raises(SystemExit):
        main([], settings=Settings(repo_path=None, ssh_key_path=None, initial_flex=None))


@requires_git
def test_view_empty_log_succeeds(settings, capsys):
    assert main(["view"], settings=settings) == 0
    assert "No timesheet commits found." in capsys.readouterr().out


@requires_git
def test_view_unreadable_repository_fails(tmp_path, capsys):
    settings = Settings(repo_path=tmp_path / "missing", ssh_key_path=None, initial_flex=None)

    assert main(["view"], settings=settings) == 1
    assert "Error: failed to open repository" in capsys.readouterr().err


@requires_git
def test_full_day_then_view(settings, ledger_repo, tmp_path, capsys):
    assert main(["in", "early", "start"], settings=settings) == 0
    assert main(["lunch", "in"], settings=settings) == 0
    assert main(["lunch", "out", "back"], settings=settings) == 0
    assert main(["out"], settings=settings) == 0
    assert main(["sick"], settings=settings) == 0

    messages = git(ledger_repo, "log", "--format=%s").splitlines()
    assert messages == [
        "[SICK-LEAVE]",
        "[CHECK-OUT] End of session.",
        "[LUNCH-END] back",
        "[LUNCH-START]",
        "[CHECK-IN] early start",
    ]
    capsys.readouterr()

    assert main(["view", "--initial-flex", "1.5"], settings=settings) == 0
    out = capsys.readouterr().out
    assert "Initial Flex: 1.50 hours" in out
    assert "SICK LEAVE: Logged for this day" in out


@requires_git
def test_view_writes_excel(settings, ledger_repo, tmp_path, capsys):
    log = EventLog(ledger_repo).open()
    log.append("[CHECK-IN]", when=sydney(2025, 11, 3, 9))
    log.append("[CHECK-OUT] End of session.", when=sydney(2025, 11, 3, 17))
    xlsx = tmp_path / "report.xlsx"

    assert main(["view", "--xlsx", str(xlsx)], settings=settings) == 0

    out = capsys.readouterr().out
    assert "  Worked     : 8h 0m" in out
    assert "  Flex       : +0h 30m" in out
    assert xlsx.exists()


@pytest.mark.parametrize("value", ["nan", "inf", "-inf", "1e12"])
def test_non_finite_or_huge_initial_flex_is_ignored(value, capsys):
    settings = Settings(repo_path=None, ssh_key_path=None, initial_flex=value)

    assert resolve_initial_flex(None, settings) == 0.0
    assert "Ignoring invalid INITIAL_FLEX" in capsys.readouterr().err


@pytest.mark.parametrize("value", ["nan", "inf", "1e12", "many"])
def test_view_rejects_bad_initial_flex_flag(value, capsys):
    settings = Settings(repo_path=None, ssh_key_path=None, initial_flex=None)

    with pytest.raises(SystemExit) as excinfo:
        main(["view", "--initial-flex", value], settings=settings)

    assert excinfo.value.code == 2
    assert "--initial-flex" in capsys.readouterr().err


def test_flex_hours_accepts_bounds():
    assert flex_hours("-10000") == -10000.0
    assert flex_hours("2.5") == 2.5


@requires_git
def test_view_unwritable_excel_path_fails(settings, ledger_repo, tmp_path, capsys):
    EventLog(ledger_repo).open().append("[CHECK-IN]", when=sydney(2025, 11, 3, 9))
    target = tmp_path / "occupied"
    target.mkdir()

    assert main(["view", "--xlsx", str(target)], settings=settings) == 1
    assert "Error: failed to write Excel report" in capsys.readouterr().err


@requires_git
def test_view_corrupt_branch_ref_fails(settings, ledger_repo, capsys):
    EventLog(ledger_repo).open().append("[CHECK-IN]")
    ref_file = ledger_repo / ".git" / git(ledger_repo, "symbolic-ref", "HEAD").strip()
    if not ref_file.is_file():
        pytest.skip("branch is not stored as a loose ref")
    ref_file.write_text("0" * 40 + "\n")

    assert main(["view"], settings=settings) == 1
    assert "Error: failed to get HEAD reference" in capsys.readouterr().err
