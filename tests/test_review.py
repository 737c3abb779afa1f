from __future__ import annotations

from unittest.mock import Mock

import pytest

from conftest import pr_payload
from gitpr.github import GitHubAPIError, GitHubClient, PullRequestState, ReviewResult
from gitpr.review import (
    ReviewEvent,
    ReviewFlagError,
    close_pull_request,
    event_from_flags,
    submit_review,
)


def fake_client(config) -> GitHubClient:
    session = Mock()
    session.headers = {}
    return GitHubClient(config, session=session)


@pytest.mark.parametrize("flags,expected", [
    ((False, False, False), ReviewEvent.APPROVE),
    ((True, False, False), ReviewEvent.APPROVE),
    ((False, True, False), ReviewEvent.REQUEST_CHANGES),
    ((False, False, True), ReviewEvent.COMMENT),
])
def test_event_from_flags(flags, expected):
    assert event_from_flags(*flags) is expected


def test_event_from_flags_rejects_combinations():
    with pytest.raises(ReviewFlagError):
        event_from_flags(True, True, False)


def test_submit_review_uses_fresh_head_sha(config, identity):
    client = fake_client(config)
    first = client._parse_pull(pr_payload(4))
    pushed = client._parse_pull(pr_payload(4))
    pushed.head_sha = "f" * 40
    client.get_pull = Mock(side_effect=[first, pushed])
    client.create_review = Mock(return_value=ReviewResult(id=1, state="APPROVED", commit_id=""))

    submit_review(client, identity, 4, "LGTM", ReviewEvent.APPROVE)
    submit_review(client, identity, 4, "LGTM", ReviewEvent.APPROVE)

    assert client.get_pull.call_count == 2
    shas = [c.args[4] for c in client.create_review.call_args_list]
    assert shas == [first.head_sha, "f" * 40]
    client.create_review.assert_called_with(identity, 4, "LGTM", "APPROVE", "f" * 40)


def test_submit_review_fails_when_pr_fetch_fails(config, identity):
    client = fake_client(config)
    client.get_pull = Mock(side_effect=GitHubAPIError("nope", 404, "Not Found"))
    client.create_review = Mock()

    with pytest.raises(GitHubAPIError):
        submit_review(client, identity, 4, "LGTM", ReviewEvent.COMMENT)

    client.create_review.assert_not_called()


def test_close_pull_request_patches_state(config, identity):
    client = fake_client(config)
    client.update_pull_state = Mock(return_value=client._parse_pull(pr_payload(4, state="closed")))

    pr = close_pull_request(client, identity, 4)

    client.update_pull_state.assert_called_once_with(identity, 4, PullRequestState.CLOSED)
    assert pr.state is PullRequestState.CLOSED


def test_close_twice_surfaces_service_error_verbatim(config, identity):
    client = fake_client(config)
    body = '{"message": "Validation Failed"}'
    client.update_pull_state = Mock(side_effect=[
        client._parse_pull(pr_payload(4, state="closed")),
        GitHubAPIError(f"GitHub API error: 422 - {body}", 422, body),
    ])

    close_pull_request(client, identity, 4)
    with pytest.raises(GitHubAPIError) as exc_info:
        close_pull_request(client, identity, 4)

    assert exc_info.value.body_text == body
