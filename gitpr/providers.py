"""
Source control provider interface and factory.

Commands talk to a SourceControlProvider; the factory picks the
implementation by matching the provider's host against the remote URL.
Only GitHub is implemented.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Protocol, runtime_checkable

from .branch import BranchPlan, apply_plan, plan_branch
from .config import GitPrConfig
from .errors import GitPrError
from .git import Git
from .github import GitHubClient, PullRequestDetail, ReviewResult
from .pulls import PullRequestReport, fetch_detail, fetch_report, list_open
from .remote import RemoteIdentity, resolve
from .review import ReviewEvent, close_pull_request, submit_review


logger = logging.getLogger(__name__)


class UnsupportedProviderError(GitPrError):
    """No provider matches the remote URL."""
    def __init__(self, remote_url: str):
        super().__init__(f"Unsupported provider for remote {remote_url!r}")
        self.remote_url = remote_url


@runtime_checkable
class SourceControlProvider(Protocol):
    """Protocol every hosting service provider must satisfy."""

    identity: RemoteIdentity
    config: GitPrConfig

    def list_pull_requests(self, now: datetime | None = None) -> list[PullRequestDetail]:
        """Open PRs with full detail, youngest first."""
        ...

    def show_pull_request_details(self, number: int) -> PullRequestReport:
        ...

    def pull(self, number: int) -> BranchPlan:
        """Fetch and check out the PR's branch; return the plan that was applied."""
        ...

    def show_diff(self, number: int) -> None:
        ...

    def submit_review(self, number: int, message: str, event: ReviewEvent) -> ReviewResult:
        ...

    def close_pull_request(self, number: int) -> PullRequestDetail:
        ...


class GitHubProvider:
    """GitHub implementation backed by the REST API and local git."""

    def __init__(
        self,
        remote_url: str,
        config: GitPrConfig,
        client: GitHubClient | None = None,
        git: Git | None = None,
    ):
        self.config = config
        self.identity = resolve(remote_url, host=config.github.host)
        self.client = client or GitHubClient(config)
        self.git = git or Git()
        logger.debug("GitHub provider for %s", self.identity)

    def list_pull_requests(self, now: datetime | None = None) -> list[PullRequestDetail]:
        return list_open(self.client, self.identity, self.config, now=now)

    def show_pull_request_details(self, number: int) -> PullRequestReport:
        return fetch_report(self.client, self.identity, number, self.config)

    def resolve_branch(self, number: int) -> tuple[PullRequestDetail, BranchPlan]:
        pr = fetch_detail(self.client, self.identity, number)
        return pr, plan_branch(pr, remote=self.config.remote)

    def pull(self, number: int) -> BranchPlan:
        _, plan = self.resolve_branch(number)
        username = self.client.get_authenticated_user()
        logger.debug("Authenticated as: %s", username)
        apply_plan(plan, self.git, remote=self.config.remote)
        return plan

    def show_diff(self, number: int) -> None:
        pr, plan = self.resolve_branch(number)
        base = pr.base_branch or self.config.base_branch
        self.git.diff(f"{self.config.remote}/{base}...{plan.local_branch}")

    def submit_review(self, number: int, message: str, event: ReviewEvent) -> ReviewResult:
        return submit_review(self.client, self.identity, number, message, event)

    def close_pull_request(self, number: int) -> PullRequestDetail:
        return close_pull_request(self.client, self.identity, number)


def get_provider(
    remote_url: str,
    config: GitPrConfig,
    git: Git | None = None,
) -> SourceControlProvider:
    """Pick the provider whose host appears in the remote URL."""
    providers: dict[str, type[GitHubProvider]] = {
        config.github.host: GitHubProvider,
    }
    for host, provider_cls in providers.items():
        if host in remote_url:
            return provider_cls(remote_url, config, git=git)
    raise UnsupportedProviderError(remote_url)
