"""
Derive a hosting-service repository identity from a git remote URL.

Handles both remote forms git accepts:
- HTTPS: https://github.com/owner/repo.git
- SSH:   git@github.com:owner/repo.git (and ssh://git@github.com/owner/repo)

The result is not validated against the service; a bogus pair surfaces as an
API error on first use.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .errors import GitPrError


logger = logging.getLogger(__name__)

DEFAULT_HOST = "github.com"


class RemoteParseError(GitPrError):
    """Owner/repository could not be derived from the remote URL."""
    def __init__(self, remote_url: str, reason: str):
        super().__init__(f"Could not parse owner/repo from {remote_url!r}: {reason}")
        self.remote_url = remote_url
        self.reason = reason


@dataclass(frozen=True)
class RemoteIdentity:
    """Repository coordinates on the hosting service."""
    owner: str
    repository: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repository}"

    def __str__(self) -> str:
        return self.full_name


def resolve(remote_url: str, host: str = DEFAULT_HOST) -> RemoteIdentity:
    """
    Parse a remote URL into a RemoteIdentity.

    Args:
        remote_url: Output of `git remote get-url origin`
        host: Hosting service host that must appear in the URL

    Returns:
        RemoteIdentity with the last two path segments as owner and repository

    Raises:
        RemoteParseError: host is absent or fewer than two segments remain
    """
    url = remote_url.strip().rstrip("/")
    if url.endswith(".git"):
        url = url[: -len(".git")]

    if host not in url:
        raise RemoteParseError(remote_url, f"host {host!r} not found")

    if url.startswith("http"):
        parts = url.split("/")
    else:
        # user@host:owner/repo, or ssh://user@host[:port]/owner/repo
        parts = url.split(":")[-1].split("/")

    logger.debug("Split URL parts: %s", parts)

    if len(parts) < 2 or not parts[-2] or not parts[-1]:
        raise RemoteParseError(remote_url, "expected <owner>/<repository> path")

    return RemoteIdentity(owner=parts[-2], repository=parts[-1])
