"""
Record clock-in/out, lunch and sick-leave events as empty commits.
"""

from dataclasses import dataclass
from pathlib import Path

from core.config import DEFAULT_CLOCK_OUT_NOTE, Settings
from core.errors import ConfigurationError, PublishError
from core.gitlog import EventLog
from models.events import EventKind

PRIVATE_KEY_MARKER = "PRIVATE KEY-----"


@dataclass
class RecordResult:
    """Outcome of a successful record() call."""

    commit_id: str
    message: str
    pushed: bool  # False when the remote was already up to date


def build_message(kind: EventKind, note: str | None = None) -> str:
    """Prefix plus optional note. Clock-out falls back to the default note."""
    note = (note or "").strip()
    if not note and kind is EventKind.CLOCK_OUT:
        note = DEFAULT_CLOCK_OUT_NOTE
    if note:
        return f"{kind.prefix} {note}"
    return kind.prefix


def check_ssh_key(key_path: Path) -> None:
    """
    Make sure the SSH key exists and looks like a private key.

    Raises:
        ConfigurationError: missing, unreadable or malformed key file
    """
    try:
        key_text = key_path.read_text()
    except OSError as e:
        raise ConfigurationError(f"failed to read SSH key file: {e}") from e

    if PRIVATE_KEY_MARKER not in key_text:
        raise ConfigurationError(f"failed to parse SSH private key: {key_path} is not a private key")


def record(
    kind: EventKind,
    note: str | None = None,
    *,
    settings: Settings,
    log: EventLog | None = None,
) -> RecordResult:
    """
    Append one event to the ledger and push it.

    Configuration is checked before the repository is touched. If the push fails
    the local commit stays in place and PublishError carries its id.

    Raises:
        ConfigurationError: repo path or SSH key missing/malformed
        LogAccessError: repository cannot be opened or committed to
        PublishError: push failed
    """
    repo_path = settings.require_repo_path()
    key_path = settings.require_ssh_key_path()
    check_ssh_key(key_path)

    if log is None:
        log = EventLog(
            repo_path,
            ssh_key_path=key_path,
            remote=settings.remote,
            ssh_passphrase=settings.ssh_passphrase,
        )
    log.open()

    message = build_message(kind, note)
    commit_id = log.append(message)
    print(f"Commit successful: {commit_id}")

    try:
        pushed = log.publish()
    except PublishError as e:
        e.commit_id = commit_id
        raise

    return RecordResult(commit_id=commit_id, message=message, pushed=pushed)
