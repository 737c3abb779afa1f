"""
Configuration management for git-pr.

Builds a single GitPrConfig value at startup from:
- git-pr.yml: optional per-repository settings (host, page sizes, remote)
- Environment: GITHUB_TOKEN (required), GIT_PR_DEBUG / DEBUG, GITHUB_API_URL

The resulting object is passed explicitly to every component; nothing below
the CLI reads the environment.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml

from . import __version__
from .errors import ConfigError


CONFIG_FILENAME = "git-pr.yml"
TRUTHY_DEBUG_VALUES = ("1", "true", "TRUE")


@dataclass
class GitHubSettings:
    """Hosting service endpoint settings."""
    host: str = "github.com"
    api_base: str = "https://api.github.com"
    timeout: float | None = None  # None blocks until the server answers


@dataclass
class ListSettings:
    """Bulk listing and display settings."""
    per_page: int = 50
    wrap_width: int = 60


@dataclass
class FetchSettings:
    """Fan-out settings for per-PR and per-commit enrichment."""
    max_workers: int = 4
    commit_page_size: int = 100


@dataclass
class GitPrConfig:
    """Complete git-pr configuration."""
    token: str = ""
    debug: bool = False
    remote: str = "origin"
    base_branch: str = "main"
    github: GitHubSettings = field(default_factory=GitHubSettings)
    listing: ListSettings = field(default_factory=ListSettings)
    fetch: FetchSettings = field(default_factory=FetchSettings)

    @property
    def user_agent(self) -> str:
        return f"git-pr/{__version__}"

    @classmethod
    def load(
        cls,
        repo_root: Path,
        environ: Mapping[str, str] | None = None,
    ) -> "GitPrConfig":
        """Load configuration from repo root directory and the environment."""
        env = os.environ if environ is None else environ
        config = cls()

        config_path = repo_root / CONFIG_FILENAME
        if config_path.exists():
            try:
                with open(config_path) as f:
                    data = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                raise ConfigError(f"Could not read {config_path}: {e}") from e
            if not isinstance(data, dict):
                raise ConfigError(f"{config_path} must contain a mapping")
            config = cls._parse_main_config(data, source=config_path)

        config.token = env.get("GITHUB_TOKEN", "").strip()
        if not config.token:
            raise ConfigError("GITHUB_TOKEN is not set")

        config.debug = is_debug_enabled(env)

        api_url = env.get("GITHUB_API_URL")
        if api_url:
            config.github.api_base = api_url

        return config

    @classmethod
    def _parse_main_config(
        cls,
        data: dict[str, Any],
        source: Path | str = CONFIG_FILENAME,
    ) -> "GitPrConfig":
        """Parse main configuration dictionary."""
        config = cls()

        config.remote = data.get("remote", "origin")
        config.base_branch = data.get("base_branch", "main")

        github_data = _section(data, "github", source)
        config.github = GitHubSettings(
            host=github_data.get("host", "github.com"),
            api_base=github_data.get("api_base", "https://api.github.com"),
            timeout=github_data.get("timeout"),
        )

        list_data = _section(data, "list", source)
        config.listing = ListSettings(
            per_page=list_data.get("per_page", 50),
            wrap_width=list_data.get("wrap_width", 60),
        )

        fetch_data = _section(data, "fetch", source)
        config.fetch = FetchSettings(
            max_workers=fetch_data.get("max_workers", 4),
            commit_page_size=fetch_data.get("commit_page_size", 100),
        )

        return config


def _section(data: dict[str, Any], key: str, source: Path | str) -> dict[str, Any]:
    """Return a nested settings section; absent or empty sections read as {}."""
    section = data.get(key) or {}
    if not isinstance(section, dict):
        raise ConfigError(f"{source}: '{key}' must be a mapping")
    return section


def is_debug_enabled(environ: Mapping[str, str]) -> bool:
    """Debug output is on when GIT_PR_DEBUG or DEBUG is 1/true/TRUE."""
    for name in ("GIT_PR_DEBUG", "DEBUG"):
        if environ.get(name) in TRUTHY_DEBUG_VALUES:
            return True
    return False


def get_repo_root() -> Path:
    """Find the repository root (directory containing .git)."""
    current = Path.cwd()
    while current != current.parent:
        if (current / ".git").exists():
            return current
        current = current.parent
    # No .git found, use current directory
    return Path.cwd()
