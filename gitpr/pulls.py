"""
Pull request aggregation.

Assembles consistent views from several independent endpoints:
- fetch_detail: one PR's metadata
- fetch_commits_with_files: a PR's commits, each enriched with changed files
- list_open: open PRs, each enriched with full detail, sorted by age

Metadata failures (the PR itself, the commit list, the summary list) abort
the operation. Per-item enrichment failures are logged as warnings and the
item is left out.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from .concurrency import map_isolated
from .config import GitPrConfig
from .github import Commit, GitHubAPIError, GitHubClient, PullRequestDetail
from .remote import RemoteIdentity
from .render import age_in_days


logger = logging.getLogger(__name__)


@dataclass
class PullRequestReport:
    """A PR's metadata together with its enriched commits."""
    detail: PullRequestDetail
    commits: list[Commit] = field(default_factory=list)


def fetch_detail(
    client: GitHubClient,
    identity: RemoteIdentity,
    number: int,
) -> PullRequestDetail:
    """Fetch full metadata for a single PR."""
    logger.debug("Fetching PR metadata for %s#%s", identity, number)
    return client.get_pull(identity, number)


def fetch_commits_with_files(
    client: GitHubClient,
    identity: RemoteIdentity,
    number: int,
    config: GitPrConfig,
) -> list[Commit]:
    """
    Fetch a PR's commits with the filenames each one changed.

    One call for the commit list, then one call per commit. A failing
    per-commit call drops that commit; a failing commit list raises.

    Returns:
        Commits in PR order, minus those whose file fetch failed
    """
    shas = client.get_pull_commits(
        identity, number, per_page=config.fetch.commit_page_size
    )
    logger.debug("%d commits in PR #%s", len(shas), number)

    def warn(sha: str, error: Exception) -> None:
        logger.warning("Failed to fetch commit %s: %s", sha, _error_text(error))

    return map_isolated(
        lambda sha: client.get_commit(identity, sha),
        shas,
        limit=config.fetch.max_workers,
        isolate=(GitHubAPIError,),
        on_error=warn,
    )


def fetch_report(
    client: GitHubClient,
    identity: RemoteIdentity,
    number: int,
    config: GitPrConfig,
) -> PullRequestReport:
    detail = fetch_detail(client, identity, number)
    commits = fetch_commits_with_files(client, identity, number, config)
    return PullRequestReport(detail=detail, commits=commits)


def list_open(
    client: GitHubClient,
    identity: RemoteIdentity,
    config: GitPrConfig,
    now: datetime | None = None,
) -> list[PullRequestDetail]:
    """
    List open PRs with full detail, youngest first.

    Fetches one page of summaries, then the full detail of each. PRs whose
    detail fetch fails are dropped with a warning. The sort is stable, so
    PRs of equal age keep the API's order.
    """
    now = now or datetime.now(timezone.utc)
    summaries = client.list_pulls(identity, state="open", per_page=config.listing.per_page)
    logger.debug("%d PRs found", len(summaries))

    def warn(summary, error: Exception) -> None:
        logger.warning(
            "Failed to fetch details for PR #%s: %s", summary.number, _error_text(error)
        )

    details = map_isolated(
        lambda summary: client.get_pull(identity, summary.number),
        summaries,
        limit=config.fetch.max_workers,
        isolate=(GitHubAPIError,),
        on_error=warn,
    )
    details.sort(key=lambda pr: age_in_days(pr.created_at, now))
    return details


def _error_text(error: Exception) -> str:
    if isinstance(error, GitHubAPIError) and error.body_text:
        return error.body_text
    return str(error)
