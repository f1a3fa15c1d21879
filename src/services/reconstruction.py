"""
Daily reconstruction of timesheet records from ledger events.

Events are grouped by calendar day in the report zone, each day keeps one
winning event per kind, and a final pass in date order computes worked time,
flex and the running flex balance.
"""

from collections.abc import Iterable
from datetime import datetime, timedelta, tzinfo

from core.config import STANDARD_DAY, get_report_zone
from models.events import DayRecord, Event, EventKind


def day_key(timestamp: datetime, tz: tzinfo) -> str:
    """Calendar date of a timestamp in the report zone, as YYYY-MM-DD."""
    return timestamp.astimezone(tz).strftime("%Y-%m-%d")


def _sort_key(event: Event) -> tuple:
    # Equal timestamps fall back to message and commit id so the winner
    # does not depend on the order events were read in.
    return (event.timestamp, event.message, event.commit_id or "")


def _earliest(current: Event | None, candidate: Event) -> Event:
    if current is None or _sort_key(candidate) < _sort_key(current):
        return candidate
    return current


def _latest(current: Event | None, candidate: Event) -> Event:
    if current is None or _sort_key(candidate) > _sort_key(current):
        return candidate
    return current


def apply_event(record: DayRecord, event: Event) -> None:
    """
    Fold one event into its day.

    Clock-in and lunch-start keep the earliest event, clock-out and lunch-end
    keep the latest. Sick leave only sets the flag. Unknown messages are ignored.
    """
    kind = event.kind
    if kind is EventKind.CLOCK_IN:
        record.in_event = _earliest(record.in_event, event)
    elif kind is EventKind.CLOCK_OUT:
        record.out_event = _latest(record.out_event, event)
    elif kind is EventKind.LUNCH_START:
        record.lunch_start_event = _earliest(record.lunch_start_event, event)
    elif kind is EventKind.LUNCH_END:
        record.lunch_end_event = _latest(record.lunch_end_event, event)
    elif kind is EventKind.SICK_LEAVE:
        record.is_sick_leave = True


def group_by_day(events: Iterable[Event], tz: tzinfo) -> dict[str, DayRecord]:
    """Group events into one in-progress DayRecord per calendar day."""
    records: dict[str, DayRecord] = {}
    for event in events:
        key = day_key(event.timestamp, tz)
        record = records.get(key)
        if record is None:
            record = records[key] = DayRecord(day=key)
        apply_event(record, event)
    return records


def compute_flex(records: list[DayRecord], initial_flex: timedelta) -> None:
    """
    Fill worked, flex and cumulative_flex on records sorted by day.

    Sick and incomplete days add no flex but carry the running total forward.
    """
    cumulative = initial_flex
    for record in records:
        if record.is_sick_leave:
            record.worked = timedelta(0)
            record.flex = timedelta(0)
        elif record.is_complete:
            worked = record.out_event.timestamp - record.in_event.timestamp
            lunch = record.lunch_break()
            if lunch is not None:
                worked -= lunch
            record.worked = worked
            record.flex = worked - STANDARD_DAY
            cumulative += record.flex
        else:
            record.worked = None
            record.flex = timedelta(0)
        record.cumulative_flex = cumulative


def reconstruct(
    events: Iterable[Event], initial_flex: timedelta, tz: tzinfo | None = None
) -> list[DayRecord] | None:
    """
    Rebuild per-day records from the full event log.

    Args:
        events: Ledger events in any order.
        initial_flex: Flex balance carried in before the first day.
        tz: Zone used to assign events to days. Defaults to the report zone.

    Returns:
        DayRecords sorted by date, or None if the log holds no events at all.
    """
    if tz is None:
        tz = get_report_zone()

    records = group_by_day(events, tz)
    if not records:
        return None

    ordered = [records[day] for day in sorted(records)]
    compute_flex(ordered, initial_flex)
    return ordered
