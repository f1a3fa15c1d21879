"""
Data models for timesheet events and daily records.

Events are immutable facts read from the ledger. DayRecords are derived from
them on every report run and never persisted.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum


class EventKind(Enum):
    """Event kinds, each identified by a fixed commit message prefix."""

    CLOCK_IN = "[CHECK-IN]"
    CLOCK_OUT = "[CHECK-OUT]"
    LUNCH_START = "[LUNCH-START]"
    LUNCH_END = "[LUNCH-END]"
    SICK_LEAVE = "[SICK-LEAVE]"

    @property
    def prefix(self) -> str:
        return self.value

    @classmethod
    def from_message(cls, message: str) -> "EventKind | None":
        """Classify a message by its leading prefix (case-sensitive)."""
        for kind in cls:
            if message.startswith(kind.prefix):
                return kind
        return None


@dataclass(frozen=True)
class Event:
    """A single ledger entry: when it was authored and what it says."""

    timestamp: datetime
    message: str
    commit_id: str | None = None

    @property
    def kind(self) -> EventKind | None:
        return EventKind.from_message(self.message)


@dataclass
class DayRecord:
    """Resolved events and derived durations for one calendar day."""

    day: str  # YYYY-MM-DD in the report zone
    in_event: Event | None = None
    out_event: Event | None = None
    lunch_start_event: Event | None = None
    lunch_end_event: Event | None = None
    is_sick_leave: bool = False
    worked: timedelta | None = None  # None when not computable
    flex: timedelta = field(default_factory=timedelta)
    cumulative_flex: timedelta = field(default_factory=timedelta)

    @property
    def is_complete(self) -> bool:
        return self.in_event is not None and self.out_event is not None

    def lunch_break(self) -> timedelta | None:
        """
        Return the lunch duration if it can be subtracted from worked time.

        The interval must be positive and lie strictly inside the in/out span.
        """
        if not self.is_complete:
            return None
        if self.lunch_start_event is None or self.lunch_end_event is None:
            return None

        start = self.lunch_start_event.timestamp
        end = self.lunch_end_event.timestamp
        if end > start and start > self.in_event.timestamp and end < self.out_event.timestamp:
            return end - start
        return None
