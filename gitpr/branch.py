"""
Local branch resolution for pulled pull requests.

A PR whose head lives in the base repository is checked out under its own
branch name and tracks the remote branch, so changes can be pushed back. A PR
from a fork is fetched through the read-only `pull/<n>/head` ref into
`<owner>-pr-<n>` with no upstream.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

from .git import Git
from .github import PullRequestDetail


logger = logging.getLogger(__name__)


class BranchKind(str, enum.Enum):
    SAME_REPO = "same-repo"
    FORK = "fork"


@dataclass(frozen=True)
class BranchPlan:
    """How a PR maps onto a local branch."""
    local_branch: str
    fetch_refspec: str
    start_point: str
    remote_tracking_ref: str | None
    is_fork: bool

    @property
    def kind(self) -> BranchKind:
        return BranchKind.FORK if self.is_fork else BranchKind.SAME_REPO


def classify(pr: PullRequestDetail) -> BranchKind:
    """Same repository only when head and base full names match exactly."""
    if pr.head_repo_full_name == pr.base_repo_full_name:
        return BranchKind.SAME_REPO
    return BranchKind.FORK


def plan_branch(pr: PullRequestDetail, remote: str = "origin") -> BranchPlan:
    """
    Decide the local branch and where its tip is fetched from.

    Fetches never write to refs/heads: the local branch may be the one
    checked out, and a force-pushed PR is not a fast-forward. The branch is
    instead reset onto the fetched tip by `checkout -B`.
    """
    kind = classify(pr)
    logger.debug(
        "PR head branch: %s, head repo: %s, head owner: %s, base repo: %s, kind: %s",
        pr.head_branch,
        pr.head_repo_full_name,
        pr.head_repo_owner,
        pr.base_repo_full_name,
        kind.value,
    )

    if kind is BranchKind.SAME_REPO:
        tracking_ref = f"refs/remotes/{remote}/{pr.head_branch}"
        return BranchPlan(
            local_branch=pr.head_branch,
            fetch_refspec=f"+refs/heads/{pr.head_branch}:{tracking_ref}",
            start_point=tracking_ref,
            remote_tracking_ref=f"{remote}/{pr.head_branch}",
            is_fork=False,
        )

    return BranchPlan(
        local_branch=f"{pr.head_repo_owner}-pr-{pr.number}",
        fetch_refspec=f"pull/{pr.number}/head",
        start_point="FETCH_HEAD",
        remote_tracking_ref=None,
        is_fork=True,
    )


def apply_plan(plan: BranchPlan, git: Git, remote: str = "origin") -> None:
    """
    Fetch the PR head and create or reset the planned branch onto it.

    Re-running picks up new and force-pushed commits, also while the branch
    is checked out. Stops at the first failing git command; a branch
    already reset is left in place.

    Raises:
        GitCommandError: fetch, checkout or upstream configuration failed
    """
    git.fetch(remote, plan.fetch_refspec)
    git.checkout(plan.local_branch, start_point=plan.start_point)
    if plan.remote_tracking_ref:
        git.set_upstream(plan.remote_tracking_ref, plan.local_branch)
