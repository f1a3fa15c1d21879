"""
Git repository used as the append-only event ledger.

All access goes through the git command line.
"""

import os
import subprocess
import tempfile
from collections.abc import Iterator
from datetime import datetime
from pathlib import Path

from core.config import BOT_AUTHOR_EMAIL, BOT_AUTHOR_NAME, DEFAULT_REMOTE
from core.errors import LogAccessError, PublishError
from models.events import Event

# Field and record separators for `git log` output
FIELD_SEP = "\x1f"
RECORD_SEP = "\x1e"
LOG_FORMAT = f"%H{FIELD_SEP}%aI{FIELD_SEP}%B{RECORD_SEP}"

UP_TO_DATE_MARKER = "Everything up-to-date"

# ssh runs SSH_ASKPASS with the prompt as its only argument; the helper
# answers with the passphrase handed over through the environment.
PASSPHRASE_ENV = "TIMESHEET_SSH_PASSPHRASE"
ASKPASS_SCRIPT = f"#!/bin/sh\nprintf '%s\\n' \"${PASSPHRASE_ENV}\"\n"


def write_askpass_helper(directory: Path) -> Path:
    """Write an executable askpass helper into directory and return its path."""
    helper = directory / "askpass.sh"
    helper.write_text(ASKPASS_SCRIPT)
    helper.chmod(0o700)
    return helper


class EventLog:
    """Ledger repository at repo_path, pushed to a remote over SSH."""

    def __init__(
        self,
        repo_path: Path,
        ssh_key_path: Path | None = None,
        remote: str = DEFAULT_REMOTE,
        ssh_passphrase: str | None = None,
    ):
        self.repo_path = Path(repo_path)
        self.ssh_key_path = ssh_key_path
        self.remote = remote
        self.ssh_passphrase = ssh_passphrase

    def _git(self, *args: str, env: dict | None = None) -> subprocess.CompletedProcess:
        cmd = ["git", "-C", str(self.repo_path), *args]
        try:
            return subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                env={**os.environ, **(env or {})},
            )
        except FileNotFoundError as e:
            raise LogAccessError(f"git executable not found: {e}") from e

    def open(self) -> "EventLog":
        """Check that repo_path is a git work tree."""
        if not self.repo_path.is_dir():
            raise LogAccessError(f"failed to open repository at {self.repo_path}: no such directory")
        result = self._git("rev-parse", "--is-inside-work-tree")
        if result.returncode != 0 or result.stdout.strip() != "true":
            raise LogAccessError(
                f"failed to open repository at {self.repo_path}: {result.stderr.strip() or 'not a work tree'}"
            )
        return self

    def head(self) -> str | None:
        """
        Resolve HEAD to a commit hash.

        Returns None for a freshly initialised repository with no commits.
        A branch that exists but does not point at a commit is an error.
        """
        result = self._git("rev-parse", "--verify", "--quiet", "HEAD^{commit}")
        if result.returncode == 0:
            return result.stdout.strip()

        symbolic = self._git("symbolic-ref", "--quiet", "HEAD")
        if symbolic.returncode != 0:
            raise LogAccessError(
                f"failed to get HEAD reference: {result.stderr.strip() or 'detached or invalid HEAD'}"
            )

        branch = symbolic.stdout.strip()
        if self._ref_exists(branch):
            raise LogAccessError(f"failed to get HEAD reference: {branch} does not point to a valid commit")
        return None

    def _ref_exists(self, refname: str) -> bool:
        """True if refname is stored, as a packed or loose ref, whatever it points to."""
        if self._git("show-ref", "--verify", "--quiet", refname).returncode == 0:
            return True

        # show-ref skips loose refs holding a null or unparsable id
        common = self._git("rev-parse", "--git-common-dir")
        if common.returncode != 0:
            raise LogAccessError(f"failed to locate git directory: {common.stderr.strip()}")
        git_dir = Path(common.stdout.strip())
        if not git_dir.is_absolute():
            git_dir = self.repo_path / git_dir
        return (git_dir / refname).exists()

    def ssh_env(self, askpass_path: Path | None = None) -> dict[str, str]:
        """
        Environment for git push over SSH.

        Args:
            askpass_path: Helper from write_askpass_helper(), used when a
                passphrase is configured.
        """
        env = {}
        if self.ssh_key_path is not None:
            env["GIT_SSH_COMMAND"] = f'ssh -i "{self.ssh_key_path}" -o IdentitiesOnly=yes'
        if self.ssh_passphrase and askpass_path is not None:
            env["SSH_ASKPASS"] = str(askpass_path)
            env["SSH_ASKPASS_REQUIRE"] = "force"
            env[PASSPHRASE_ENV] = self.ssh_passphrase
        return env

    def current_branch(self) -> str | None:
        result = self._git("symbolic-ref", "--quiet", "--short", "HEAD")
        if result.returncode != 0:
            return None
        return result.stdout.strip()

    def append(self, message: str, when: datetime | None = None) -> str:
        """
        Create an empty commit carrying message and return its hash.

        Args:
            message: Commit message.
            when: Author timestamp. Uses the current wall-clock time if None.
        """
        env = {
            "GIT_AUTHOR_NAME": BOT_AUTHOR_NAME,
            "GIT_AUTHOR_EMAIL": BOT_AUTHOR_EMAIL,
            "GIT_COMMITTER_NAME": BOT_AUTHOR_NAME,
            "GIT_COMMITTER_EMAIL": BOT_AUTHOR_EMAIL,
        }
        if when is not None:
            env["GIT_AUTHOR_DATE"] = when.isoformat()
            env["GIT_COMMITTER_DATE"] = when.isoformat()

        result = self._git(
            "commit", "--allow-empty", "--no-verify", "--no-gpg-sign", "--quiet", "-m", message, env=env
        )
        if result.returncode != 0:
            raise LogAccessError(f"failed to create commit: {result.stderr.strip() or result.stdout.strip()}")

        commit_id = self.head()
        if commit_id is None:
            raise LogAccessError("failed to create commit: HEAD not updated")
        return commit_id

    def publish(self) -> bool:
        """
        Push HEAD to the remote.

        Returns:
            True if the remote was updated, False if it was already up to date.

        Raises:
            PublishError: HEAD is detached, or the push failed for any other reason.
        """
        if self.current_branch() is None:
            raise PublishError(
                "failed to push to remote: HEAD is not on a branch; "
                "check out a branch in the ledger repository"
            )

        with tempfile.TemporaryDirectory() as tmp:
            askpass = write_askpass_helper(Path(tmp)) if self.ssh_passphrase else None
            result = self._git("push", "--porcelain", self.remote, "HEAD", env=self.ssh_env(askpass))
        output = f"{result.stdout}\n{result.stderr}"
        if result.returncode != 0:
            raise PublishError(f"failed to push to remote: {result.stderr.strip()}")
        return UP_TO_DATE_MARKER not in output and "[up to date]" not in output

    def iterate(self) -> Iterator[Event]:
        """Yield every event reachable from HEAD, newest first."""
        head = self.head()
        if head is None:
            return

        result = self._git("log", f"--format={LOG_FORMAT}", head)
        if result.returncode != 0:
            raise LogAccessError(f"failed to get commit logs: {result.stderr.strip()}")

        for chunk in result.stdout.split(RECORD_SEP):
            chunk = chunk.lstrip("\n")
            if not chunk:
                continue
            commit_id, author_date, message = chunk.split(FIELD_SEP, 2)
            yield Event(
                timestamp=datetime.fromisoformat(author_date),
                message=message,
                commit_id=commit_id,
            )
