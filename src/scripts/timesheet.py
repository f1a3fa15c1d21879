#!/usr/bin/env python3
"""
Track work hours as empty commits in a Git repository.

Clock in/out, lunch breaks and sick leave are recorded as commits and pushed
to the remote. 'view' replays the history into a per-day report with worked
hours and a running flex balance.

Usage:
    uv run python src/scripts/timesheet.py in
    uv run python src/scripts/timesheet.py lunch in
    uv run python src/scripts/timesheet.py lunch out back from lunch
    uv run python src/scripts/timesheet.py out
    uv run python src/scripts/timesheet.py sick
    uv run python src/scripts/timesheet.py view --initial-flex 2.5 --xlsx output/timesheet.xlsx

Environment (load from .env if present):
    TIMESHEET_REPO_PATH, SSH_PRIVATE_KEY_PATH, SSH_PASSPHRASE, INITIAL_FLEX,
    TIMESHEET_TIMEZONE, TIMESHEET_REMOTE
"""

import argparse
import math
import sys
from datetime import timedelta
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import MAX_INITIAL_FLEX_HOURS, Settings, get_report_zone, load_settings
from core.errors import PublishError, TimesheetError
from core.gitlog import EventLog
from models.events import EventKind
from services.reconstruction import reconstruct
from services.recorder import record
from services.reports import create_timesheet_excel_report, render_report

# kind -> (progress message, success message, failure verb)
RECORD_MESSAGES = {
    EventKind.CLOCK_IN: ("Clocking IN", "Successfully clocked IN!", "clock in"),
    EventKind.CLOCK_OUT: ("Clocking OUT...", "Successfully clocked OUT!", "clock out"),
    EventKind.LUNCH_START: ("Starting lunch break", "Lunch break started!", "record lunch start"),
    EventKind.LUNCH_END: ("Ending lunch break", "Lunch break ended!", "record lunch end"),
    EventKind.SICK_LEAVE: ("Logging sick leave", "Successfully logged sick leave!", "log sick leave"),
}


# =============================================================================
# COMMANDS
# =============================================================================


def run_record(kind: EventKind, note_words: list[str], settings: Settings) -> int:
    """Record one event. Returns the process exit code."""
    progress, success, verb = RECORD_MESSAGES[kind]
    print(progress)

    note = " ".join(note_words)
    try:
        result = record(kind, note or None, settings=settings)
    except PublishError as e:
        if e.commit_id:
            print(f"Failed to {verb}: recorded locally as {e.commit_id} but not pushed: {e}", file=sys.stderr)
        else:
            print(f"Failed to {verb}: {e}", file=sys.stderr)
        return 1
    except TimesheetError as e:
        print(f"Failed to {verb}: {e}", file=sys.stderr)
        return 1

    if not result.pushed:
        print("Remote already up to date")
    print(success)
    return 0


def flex_hours(text: str) -> float:
    """
    Parse a flex balance in hours.

    Raises:
        ValueError: not a number, not finite, or beyond MAX_INITIAL_FLEX_HOURS
    """
    value = float(text)
    if not math.isfinite(value) or abs(value) > MAX_INITIAL_FLEX_HOURS:
        raise ValueError(f"flex must be a finite number of hours within ±{MAX_INITIAL_FLEX_HOURS}")
    return value


def resolve_initial_flex(flag_value: float | None, settings: Settings) -> float:
    """Use --initial-flex if given, otherwise INITIAL_FLEX, otherwise 0."""
    if flag_value is not None:
        return flag_value
    if settings.initial_flex:
        try:
            return flex_hours(settings.initial_flex)
        except ValueError:
            print(f"Ignoring invalid INITIAL_FLEX value: {settings.initial_flex!r}", file=sys.stderr)
    return 0.0


def run_view(initial_flex_flag: float | None, xlsx_path: Path | None, settings: Settings) -> int:
    """Print the daily report. Returns the process exit code."""
    initial_flex = resolve_initial_flex(initial_flex_flag, settings)
    tz = get_report_zone(settings.timezone_name)

    try:
        log = EventLog(settings.require_repo_path(), remote=settings.remote).open()
        records = reconstruct(log.iterate(), timedelta(hours=initial_flex), tz)
    except TimesheetError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(render_report(records, initial_flex, tz))
    if records is not None and xlsx_path is not None:
        try:
            create_timesheet_excel_report(records, initial_flex, xlsx_path, tz)
        except OSError as e:
            print(f"Error: failed to write Excel report to {xlsx_path}: {e}", file=sys.stderr)
            return 1
    return 0


# =============================================================================
# MAIN
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="timesheet",
        description="A CLI tool to track your work hours using Git commits.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    in_parser = subparsers.add_parser("in", help="Clock in for a new work session.")
    in_parser.add_argument("note", nargs="*", help="Optional note")

    out_parser = subparsers.add_parser("out", help="Clock out of the current work session.")
    out_parser.add_argument("note", nargs="*", help="Optional note (default: 'End of session.')")

    sick_parser = subparsers.add_parser("sick", help="Log a sick leave for today.")
    sick_parser.add_argument("note", nargs="*", help="Optional note")

    lunch_parser = subparsers.add_parser("lunch", help="Commands related to lunch breaks")
    lunch_sub = lunch_parser.add_subparsers(dest="lunch_command", required=True)
    lunch_in = lunch_sub.add_parser("in", help="Record the start of a lunch break.")
    lunch_in.add_argument("note", nargs="*", help="Optional note")
    lunch_out = lunch_sub.add_parser("out", help="Record the end of a lunch break.")
    lunch_out.add_argument("note", nargs="*", help="Optional note")

    view_parser = subparsers.add_parser(
        "view",
        help="Show IN, OUT, lunch break times, hours worked and flex for each day",
    )
    view_parser.add_argument(
        "--initial-flex",
        type=flex_hours,
        default=None,
        help="Initial flex in hours (default 0, or from .env INITIAL_FLEX)",
    )
    view_parser.add_argument(
        "--xlsx",
        type=Path,
        default=None,
        help="Also write the report to this Excel file",
    )
    return parser


def main(argv: list[str] | None = None, settings: Settings | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    if settings is None:
        settings = load_settings()

    if args.command == "view":
        return run_view(args.initial_flex, args.xlsx, settings)

    if args.command == "lunch":
        kind = EventKind.LUNCH_START if args.lunch_command == "in" else EventKind.LUNCH_END
    else:
        kind = {
            "in": EventKind.CLOCK_IN,
            "out": EventKind.CLOCK_OUT,
            "sick": EventKind.SICK_LEAVE,
        }[args.command]
    return run_record(kind, args.note, settings)


def cli():
    sys.exit(main())


if __name__ == "__main__":
    cli()
