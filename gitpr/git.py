"""
Thin wrapper around the git executable.

Each call is a plain subprocess; only the exit status is consulted. Output of
fetch/checkout/diff goes straight to the user's terminal.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from .errors import GitPrError


logger = logging.getLogger(__name__)


class GitCommandError(GitPrError):
    """A git subprocess exited non-zero or could not be started."""
    def __init__(self, args: list[str], returncode: int | None):
        command = " ".join(["git", *args])
        if returncode is None:
            message = f"Could not run `{command}`"
        else:
            message = f"`{command}` failed with exit code {returncode}"
        super().__init__(message)
        self.args_list = args
        self.returncode = returncode


class Git:
    """Runs git commands in a working directory."""

    def __init__(self, cwd: Path | None = None):
        self.cwd = cwd

    def run(self, *args: str, capture: bool = False) -> str:
        """Run git with args; return stdout when capture is set."""
        logger.debug("Running: git %s", " ".join(args))
        try:
            result = subprocess.run(
                ["git", *args],
                cwd=self.cwd,
                capture_output=capture,
                text=True,
            )
        except OSError as e:
            raise GitCommandError(list(args), None) from e

        if result.returncode != 0:
            raise GitCommandError(list(args), result.returncode)
        return result.stdout.strip() if capture else ""

    def get_remote_url(self, remote: str = "origin") -> str:
        return self.run("remote", "get-url", remote, capture=True)

    def fetch(self, remote: str, refspec: str) -> None:
        self.run("fetch", remote, refspec)

    def checkout(self, branch: str, start_point: str | None = None) -> None:
        """Switch to branch; with start_point, create or reset it there first."""
        if start_point:
            self.run("checkout", "-B", branch, start_point)
        else:
            self.run("checkout", branch)

    def set_upstream(self, remote_ref: str, branch: str) -> None:
        self.run("branch", "--set-upstream-to", remote_ref, branch)

    def diff(self, range_spec: str) -> None:
        self.run("diff", range_spec)
