from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from gitpr.config import GitPrConfig
from gitpr.remote import RemoteIdentity


NOW = datetime(2024, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


def iso_days_ago(days: int, now: datetime = NOW) -> str:
    return (now - timedelta(days=days)).strftime("%Y-%m-%dT%H:%M:%SZ")


def pr_payload(
    number: int,
    days_old: int = 1,
    head_repo: str | None = "octo/widgets",
    base_repo: str = "octo/widgets",
    head_owner: str = "octo",
    head_ref: str = "feature-x",
    **overrides: Any,
) -> dict[str, Any]:
    """Minimal single-PR payload as returned by GET /repos/{o}/{r}/pulls/{n}."""
    data = {
        "number": number,
        "title": f"PR {number}",
        "state": "open",
        "user": {"login": "alice"},
        "created_at": iso_days_ago(days_old),
        "body": "Some description",
        "labels": [{"name": "bug"}],
        "commits": 2,
        "changed_files": 3,
        "html_url": f"https://github.com/octo/widgets/pull/{number}",
        "head": {
            "sha": f"{number:040d}",
            "ref": head_ref,
            "user": {"login": head_owner},
            "repo": {"full_name": head_repo, "owner": {"login": head_owner}} if head_repo else None,
        },
        "base": {"ref": "main", "repo": {"full_name": base_repo}},
    }
    data.update(overrides)
    return data


@pytest.fixture
def config() -> GitPrConfig:
    config = GitPrConfig(token="test-token")
    config.fetch.max_workers = 1
    return config


@pytest.fixture
def identity() -> RemoteIdentity:
    return RemoteIdentity(owner="octo", repository="widgets")
