"""
Configuration constants and environment setup.
"""

import os
from dataclasses import dataclass, field
from datetime import timedelta, timezone, tzinfo
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

from core.errors import ConfigurationError

load_dotenv()

# =============================================================================
# WORKDAY CONFIGURATION
# =============================================================================

STANDARD_DAY_HOURS = 7.5
STANDARD_DAY = timedelta(hours=STANDARD_DAY_HOURS)
MAX_INITIAL_FLEX_HOURS = 10_000

# =============================================================================
# TIME ZONE CONFIGURATION
# =============================================================================

DEFAULT_TIMEZONE = "Australia/Sydney"
FALLBACK_UTC_OFFSET_HOURS = 10
FALLBACK_TZ_NAME = "AEST"

# =============================================================================
# COMMIT CONFIGURATION
# =============================================================================

BOT_AUTHOR_NAME = "Automated Timesheet Bot"
BOT_AUTHOR_EMAIL = "timesheet-bot@example.com"
DEFAULT_REMOTE = "origin"
DEFAULT_CLOCK_OUT_NOTE = "End of session."

# =============================================================================
# REPORT CONFIGURATION
# =============================================================================

EXCEL_HEADERS = [
    "Date", "In", "Out", "Lunch Start", "Lunch End",
    "Worked (h)", "Flex (h)", "Cumulative Flex (h)", "Sick Leave",
]
EXCEL_SHEET_NAME = "Timesheet"


@dataclass(frozen=True)
class Settings:
    """Process-wide settings, read once and passed to the recorder and the report."""

    repo_path: Path | None
    ssh_key_path: Path | None
    initial_flex: str | None
    timezone_name: str = DEFAULT_TIMEZONE
    remote: str = DEFAULT_REMOTE
    ssh_passphrase: str | None = field(default=None, repr=False)

    def require_repo_path(self) -> Path:
        if self.repo_path is None:
            raise ConfigurationError(
                "TIMESHEET_REPO_PATH environment variable is not set. "
                "Please set it to your Git repository path"
            )
        return self.repo_path

    def require_ssh_key_path(self) -> Path:
        if self.ssh_key_path is None:
            raise ConfigurationError(
                "SSH_PRIVATE_KEY_PATH is not set. "
                "Set it to your SSH private key location (e.g., ~/.ssh/id_rsa)"
            )
        return self.ssh_key_path


def load_settings(environ: dict[str, str] | None = None) -> Settings:
    """
    Build Settings from the environment.

    Args:
        environ: Mapping to read from. Uses os.environ (after .env loading) if None.
    """
    env = os.environ if environ is None else environ

    repo_path = env.get("TIMESHEET_REPO_PATH", "").strip()
    ssh_key_path = env.get("SSH_PRIVATE_KEY_PATH", "").strip()

    return Settings(
        repo_path=Path(repo_path).expanduser() if repo_path else None,
        ssh_key_path=Path(ssh_key_path).expanduser() if ssh_key_path else None,
        initial_flex=env.get("INITIAL_FLEX") or None,
        timezone_name=env.get("TIMESHEET_TIMEZONE") or DEFAULT_TIMEZONE,
        remote=env.get("TIMESHEET_REMOTE") or DEFAULT_REMOTE,
        ssh_passphrase=env.get("SSH_PASSPHRASE") or None,
    )


def get_report_zone(name: str = DEFAULT_TIMEZONE) -> tzinfo:
    """Return the report time zone, or a fixed UTC+10 zone when zone data is missing."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return timezone(timedelta(hours=FALLBACK_UTC_OFFSET_HOURS), FALLBACK_TZ_NAME)
