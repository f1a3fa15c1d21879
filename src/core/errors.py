"""
Error types raised by the recorder, the event log and the report.

Data anomalies (missing clock-out, malformed lunch, unknown prefixes) are not
errors; they surface as "Not found" / "Not computable" in the report.
"""


class TimesheetError(Exception):
    """Base class for fatal timesheet errors."""


class ConfigurationError(TimesheetError):
    """Required location or credential configuration is missing or malformed."""


class LogAccessError(TimesheetError):
    """The ledger repository cannot be opened, read or written."""


class PublishError(TimesheetError):
    """Pushing to the remote failed. The local commit is kept."""

    def __init__(self, message: str, commit_id: str | None = None):
        super().__init__(message)
        self.commit_id = commit_id
