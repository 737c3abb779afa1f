"""
Review submission.

The head commit SHA is read from the API immediately before each submission
so the review is pinned to the code as it is now, not as it was when the PR
was last listed.
"""

from __future__ import annotations

import enum
import logging

from .errors import GitPrError
from .github import GitHubClient, PullRequestDetail, PullRequestState, ReviewResult
from .remote import RemoteIdentity


logger = logging.getLogger(__name__)


class ReviewEvent(str, enum.Enum):
    APPROVE = "APPROVE"
    REQUEST_CHANGES = "REQUEST_CHANGES"
    COMMENT = "COMMENT"


class ReviewFlagError(GitPrError):
    """More than one review action flag was given."""


def event_from_flags(approve: bool, reject: bool, comment_only: bool) -> ReviewEvent:
    """Map the mutually exclusive CLI flags to an event, defaulting to approve."""
    if sum((approve, reject, comment_only)) > 1:
        raise ReviewFlagError("--approve, --reject and --comment-only are mutually exclusive")
    if reject:
        return ReviewEvent.REQUEST_CHANGES
    if comment_only:
        return ReviewEvent.COMMENT
    return ReviewEvent.APPROVE


def submit_review(
    client: GitHubClient,
    identity: RemoteIdentity,
    number: int,
    message: str,
    event: ReviewEvent,
) -> ReviewResult:
    """Submit a review against the PR's current head commit."""
    pr = client.get_pull(identity, number)
    if not pr.head_sha:
        raise GitPrError(f"Could not determine head commit of PR #{number}")
    logger.debug("commit_id for PR #%s: %s", number, pr.head_sha)
    return client.create_review(identity, number, message, event.value, pr.head_sha)


def close_pull_request(
    client: GitHubClient,
    identity: RemoteIdentity,
    number: int,
) -> PullRequestDetail:
    """Close a PR. Errors from the service (e.g. already closed) propagate unchanged."""
    logger.debug("Closing PR #%s", number)
    return client.update_pull_state(identity, number, PullRequestState.CLOSED)
