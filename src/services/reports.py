"""
Report generation utilities for text and Excel formats.
"""

from datetime import timedelta, tzinfo
from pathlib import Path

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from core.config import EXCEL_HEADERS, EXCEL_SHEET_NAME, get_report_zone
from models.events import DayRecord, Event

NO_RECORDS_MESSAGE = "No timesheet commits found."


def format_duration(d: timedelta, signed: bool = False) -> str:
    """
    Format a duration as 'Hh Mm', truncated to whole minutes.

    With signed=True a leading '+' or '-' applies to the whole value.
    """
    total_minutes = int(d.total_seconds() / 60)
    h, m = divmod(abs(total_minutes), 60)
    text = f"{h}h {m}m"
    if total_minutes < 0:
        return f"-{text}"
    return f"+{text}" if signed else text


def format_event_time(event: Event, tz: tzinfo) -> str:
    """Format an event as 'HH:MM:SS ZONE (message)' in the report zone."""
    local = event.timestamp.astimezone(tz)
    return f"{local.strftime('%H:%M:%S %Z')} ({event.message.strip()})"


def hours(d: timedelta) -> float:
    """Duration as decimal hours, rounded to 2 places."""
    return round(d.total_seconds() / 3600, 2)


def render_day(record: DayRecord, tz: tzinfo) -> list[str]:
    """Render one day's block of the text report."""
    lines = [f"Date: {record.day}"]
    if record.is_sick_leave:
        lines.append("  SICK LEAVE: Logged for this day")
        return lines

    rows = [
        ("IN         ", record.in_event),
        ("OUT        ", record.out_event),
        ("Lunch Start", record.lunch_start_event),
        ("Lunch End  ", record.lunch_end_event),
    ]
    for label, event in rows:
        if event is not None:
            lines.append(f"  {label}: {format_event_time(event, tz)}")
        else:
            lines.append(f"  {label}: Not found")

    if record.worked is None:
        lines.append("  Worked     : Not computable")
        return lines

    lines.append(f"  Worked     : {format_duration(record.worked)}")
    lines.append(f"  Flex       : {format_duration(record.flex, signed=True)}")
    lines.append(f"  Cum. Flex  : {format_duration(record.cumulative_flex, signed=True)}")
    return lines


def render_report(
    records: list[DayRecord] | None, initial_flex_hours: float, tz: tzinfo | None = None
) -> str:
    """
    Render the full daily report.

    Args:
        records: Output of reconstruct(). None means the log had no events.
        initial_flex_hours: Flex balance shown in the header.
        tz: Zone for displayed times. Defaults to the report zone.
    """
    if records is None:
        return NO_RECORDS_MESSAGE
    if tz is None:
        tz = get_report_zone()

    lines = [
        "Timesheet IN/OUT, lunch breaks, worked hours, flex, cumulative flex by day:",
        f"Initial Flex: {initial_flex_hours:.2f} hours",
        "",
    ]
    for record in records:
        lines.extend(render_day(record, tz))
        lines.append("")
    return "\n".join(lines)


# =============================================================================
# EXCEL REPORT GENERATION
# =============================================================================


def write_excel_timesheet_sheet(ws, records: list[DayRecord], tz: tzinfo):
    """
    Write one row per day to an Excel worksheet.

    Headers: Date, In, Out, Lunch Start, Lunch End, Worked (h), Flex (h),
    Cumulative Flex (h), Sick Leave
    """
    for col_idx, header in enumerate(EXCEL_HEADERS, start=1):
        cell = ws.cell(row=1, column=col_idx, value=header)
        cell.font = Font(bold=True)

    for row_idx, record in enumerate(records, start=2):
        times = [
            event.timestamp.astimezone(tz).strftime("%H:%M:%S") if event else None
            for event in (
                record.in_event,
                record.out_event,
                record.lunch_start_event,
                record.lunch_end_event,
            )
        ]
        row_data = [
            record.day,
            *times,
            hours(record.worked) if record.worked is not None else None,
            hours(record.flex),
            hours(record.cumulative_flex),
            "Yes" if record.is_sick_leave else None,
        ]
        for col_idx, value in enumerate(row_data, start=1):
            ws.cell(row=row_idx, column=col_idx, value=value)

    for col_idx, header in enumerate(EXCEL_HEADERS, start=1):
        ws.column_dimensions[get_column_letter(col_idx)].width = max(len(header) + 2, 12)


def create_timesheet_excel_report(
    records: list[DayRecord], initial_flex_hours: float, output_path: Path, tz: tzinfo | None = None
):
    """
    Create Excel report with a single timesheet sheet.

    The initial flex balance is stored in the workbook title so the cumulative
    column can be traced back to its starting point.
    """
    if tz is None:
        tz = get_report_zone()

    wb = Workbook()
    ws = wb.active
    ws.title = EXCEL_SHEET_NAME
    write_excel_timesheet_sheet(ws, records, tz)
    wb.properties.title = f"Timesheet (initial flex {initial_flex_hours:.2f} h)"

    output_path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(str(output_path))
    print(f"Saved Excel report to: {output_path}")
