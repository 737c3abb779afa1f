"""Exception hierarchy shared by all git-pr components."""

from __future__ import annotations


class GitPrError(Exception):
    """Base class for errors reported to the user."""


class ConfigError(GitPrError):
    """Configuration is missing or unreadable."""
