"""
GitHub REST API client for git-pr.

Thin authenticated wrapper over the endpoints the tool consumes:
- pull requests (get, list open, close)
- pull request commits and single commits (changed files)
- reviews
- the authenticated user

Every request carries the bearer token and a User-Agent header. There is no
retry or rate-limit handling: a non-2xx response is raised as GitHubAPIError
carrying the response body so the caller can show it verbatim.
"""

from __future__ import annotations

import enum
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import requests

from .config import GitPrConfig
from .errors import GitPrError
from .remote import RemoteIdentity


logger = logging.getLogger(__name__)

PLACEHOLDER = "-"


class GitHubAPIError(GitPrError):
    """Non-2xx response (or transport failure) from the GitHub API."""
    def __init__(self, message: str, status_code: int | None = None, body_text: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body_text = body_text


class MalformedResponseError(GitHubAPIError):
    """Response decoded but lacks a field the tool cannot default."""


class PullRequestState(str, enum.Enum):
    OPEN = "open"
    CLOSED = "closed"


@dataclass
class PullRequestSummary:
    """Minimal projection returned by the list endpoint."""
    number: int
    title: str
    author: str
    created_at: datetime


@dataclass
class PullRequestDetail:
    """Full pull request as returned by the single-PR endpoint."""
    number: int
    title: str
    author: str
    created_at: datetime
    body: str | None = None
    labels: list[str] = field(default_factory=list)
    commit_count: int = 0
    changed_file_count: int = 0
    head_sha: str = ""
    base_repo_full_name: str = ""
    head_repo_full_name: str = ""
    head_repo_owner: str = ""
    head_branch: str = ""
    base_branch: str = ""
    state: PullRequestState = PullRequestState.OPEN
    html_url: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "number": self.number,
            "title": self.title,
            "author": self.author,
            "created_at": self.created_at.isoformat(),
            "body": self.body,
            "labels": list(self.labels),
            "commits": self.commit_count,
            "changed_files": self.changed_file_count,
            "head_sha": self.head_sha,
            "base_repo": self.base_repo_full_name,
            "head_repo": self.head_repo_full_name,
            "head_repo_owner": self.head_repo_owner,
            "head_branch": self.head_branch,
            "base_branch": self.base_branch,
            "state": self.state.value,
            "html_url": self.html_url,
        }


@dataclass
class Commit:
    """A commit and the files it changed, in API order."""
    sha: str
    files: list[str] = field(default_factory=list)

    @property
    def short_sha(self) -> str:
        return self.sha[:7]


@dataclass
class ReviewResult:
    """Review created on a pull request."""
    id: int | None
    state: str
    commit_id: str
    html_url: str = ""


def parse_timestamp(value: str | None) -> datetime:
    """Parse an ISO-8601 API timestamp into an aware UTC datetime."""
    if not value:
        raise MalformedResponseError("Missing created_at timestamp")
    try:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as e:
        raise MalformedResponseError(f"Invalid timestamp: {value!r}") from e
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


class GitHubClient:
    """GitHub REST API client bound to one configuration."""

    def __init__(self, config: GitPrConfig, session: requests.Session | None = None):
        self.base_url = config.github.api_base.rstrip("/")
        self.timeout = config.github.timeout
        self.session = session or requests.Session()

        self.session.headers["Authorization"] = f"Bearer {config.token}"
        self.session.headers["Accept"] = "application/vnd.github+json"
        self.session.headers["User-Agent"] = config.user_agent

    def _request(
        self,
        method: str,
        endpoint: str,
        params: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> requests.Response:
        """Make a single API request; raise GitHubAPIError on any failure."""
        url = f"{self.base_url}{endpoint}"
        logger.debug("%s %s params=%s", method, url, params)
        if "json" in kwargs:
            logger.debug("Payload: %s", json.dumps(kwargs["json"]))

        try:
            response = self.session.request(
                method, url, params=params, timeout=self.timeout, **kwargs
            )
        except requests.RequestException as e:
            raise GitHubAPIError(f"Request failed: {e}") from e

        logger.debug("Response status: %s from %s", response.status_code, url)

        if response.status_code >= 400:
            raise GitHubAPIError(
                f"GitHub API error: {response.status_code} - {response.text}",
                response.status_code,
                response.text,
            )

        return response

    def _json(self, response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError(
                f"Invalid JSON from {response.url}", response.status_code, response.text
            ) from e

    def get_pull(self, identity: RemoteIdentity, number: int) -> PullRequestDetail:
        """Get a specific pull request."""
        endpoint = f"/repos/{identity.full_name}/pulls/{number}"
        response = self._request("GET", endpoint)
        return self._parse_pull(self._json(response))

    def list_pulls(
        self,
        identity: RemoteIdentity,
        state: str = "open",
        per_page: int = 50,
    ) -> list[PullRequestSummary]:
        """
        List pull requests for a repository (first page only).

        Args:
            identity: Repository coordinates
            state: PR state filter (open, closed, all)
            per_page: Page size; results beyond the first page are not fetched

        Returns:
            List of PullRequestSummary objects in API order
        """
        endpoint = f"/repos/{identity.full_name}/pulls"
        params = {"state": state, "per_page": per_page}
        response = self._request("GET", endpoint, params=params)
        return [self._parse_summary(item) for item in self._json(response)]

    def get_pull_commits(
        self,
        identity: RemoteIdentity,
        number: int,
        per_page: int = 100,
    ) -> list[str]:
        """Get the SHAs of a pull request's commits, oldest first."""
        endpoint = f"/repos/{identity.full_name}/pulls/{number}/commits"
        response = self._request("GET", endpoint, params={"per_page": per_page})
        return [item.get("sha") or PLACEHOLDER for item in self._json(response)]

    def get_commit(self, identity: RemoteIdentity, sha: str) -> Commit:
        """Get a single commit with the filenames it changed."""
        endpoint = f"/repos/{identity.full_name}/commits/{sha}"
        data = self._json(self._request("GET", endpoint))
        files = [f["filename"] for f in data.get("files") or [] if f.get("filename")]
        return Commit(sha=data.get("sha") or sha, files=files)

    def get_authenticated_user(self) -> str:
        """Return the login of the token's owner."""
        data = self._json(self._request("GET", "/user"))
        return data.get("login") or PLACEHOLDER

    def create_review(
        self,
        identity: RemoteIdentity,
        number: int,
        body: str,
        event: str,
        commit_id: str,
    ) -> ReviewResult:
        """Create a review pinned to commit_id."""
        endpoint = f"/repos/{identity.full_name}/pulls/{number}/reviews"
        payload = {"body": body, "event": event, "commit_id": commit_id}
        data = self._json(self._request("POST", endpoint, json=payload))
        return ReviewResult(
            id=data.get("id"),
            state=data.get("state") or event,
            commit_id=data.get("commit_id") or commit_id,
            html_url=data.get("html_url", ""),
        )

    def update_pull_state(
        self,
        identity: RemoteIdentity,
        number: int,
        state: PullRequestState,
    ) -> PullRequestDetail:
        """Patch a pull request's state (used to close it)."""
        endpoint = f"/repos/{identity.full_name}/pulls/{number}"
        response = self._request("PATCH", endpoint, json={"state": state.value})
        return self._parse_pull(self._json(response))

    def _parse_summary(self, data: dict[str, Any]) -> PullRequestSummary:
        """Parse a list entry into PullRequestSummary."""
        user = data.get("user") or {}
        if data.get("number") is None:
            raise MalformedResponseError("Pull request entry without a number")
        return PullRequestSummary(
            number=data["number"],
            title=data.get("title") or PLACEHOLDER,
            author=user.get("login") or PLACEHOLDER,
            created_at=parse_timestamp(data.get("created_at")),
        )

    def _parse_pull(self, data: dict[str, Any]) -> PullRequestDetail:
        """Parse raw PR data into PullRequestDetail."""
        summary = self._parse_summary(data)
        head = data.get("head") or {}
        base = data.get("base") or {}
        head_repo = head.get("repo") or {}
        base_repo = base.get("repo") or {}
        # head.repo is null once a fork is deleted; head.user still names it
        head_owner = (head_repo.get("owner") or {}).get("login") or (
            (head.get("user") or {}).get("login") or ""
        )

        labels: list[str] = []
        for label in data.get("labels") or []:
            name = label.get("name")
            if name and name not in labels:
                labels.append(name)

        try:
            state = PullRequestState(data.get("state") or "open")
        except ValueError:
            state = PullRequestState.CLOSED

        return PullRequestDetail(
            number=summary.number,
            title=summary.title,
            author=summary.author,
            created_at=summary.created_at,
            body=data.get("body"),
            labels=labels,
            commit_count=data.get("commits") or 0,
            changed_file_count=data.get("changed_files") or 0,
            head_sha=head.get("sha") or "",
            base_repo_full_name=base_repo.get("full_name") or "",
            head_repo_full_name=head_repo.get("full_name") or "",
            head_repo_owner=head_owner,
            head_branch=head.get("ref") or "",
            base_branch=base.get("ref") or "",
            state=state,
            html_url=data.get("html_url", ""),
        )
