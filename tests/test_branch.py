from __future__ import annotations

import shutil
import subprocess
from unittest.mock import Mock, call

import pytest

from conftest import pr_payload
from gitpr.branch import BranchKind, apply_plan, classify, plan_branch
from gitpr.config import GitPrConfig
from gitpr.git import Git, GitCommandError
from gitpr.github import GitHubClient


def parse(payload):
    return GitHubClient(GitPrConfig(token="t"))._parse_pull(payload)


def test_same_repo_plan_tracks_remote_branch():
    pr = parse(pr_payload(12, head_ref="feature-x"))

    plan = plan_branch(pr)

    assert classify(pr) is BranchKind.SAME_REPO
    assert plan.is_fork is False
    assert plan.local_branch == "feature-x"
    assert plan.fetch_refspec == "+refs/heads/feature-x:refs/remotes/origin/feature-x"
    assert plan.start_point == "refs/remotes/origin/feature-x"
    assert plan.remote_tracking_ref == "origin/feature-x"


def test_fork_plan_uses_pull_ref_and_owner_branch_name():
    pr = parse(pr_payload(12, head_repo="mallory/widgets", head_owner="mallory"))

    plan = plan_branch(pr)

    assert classify(pr) is BranchKind.FORK
    assert plan.is_fork is True
    assert plan.local_branch == "mallory-pr-12"
    assert plan.fetch_refspec == "pull/12/head"
    assert plan.start_point == "FETCH_HEAD"
    assert plan.remote_tracking_ref is None


def test_owner_only_difference_is_fork():
    pr = parse(pr_payload(3, head_repo="someone/widgets", head_owner="someone"))
    assert classify(pr) is BranchKind.FORK


def test_classification_is_case_sensitive():
    pr = parse(pr_payload(3, head_repo="Octo/widgets", base_repo="octo/widgets"))
    assert classify(pr) is BranchKind.FORK


def test_deleted_fork_is_fork():
    pr = parse(pr_payload(3, head_repo=None, head_owner="ghost"))
    assert plan_branch(pr).local_branch == "ghost-pr-3"


def test_plan_uses_configured_remote():
    pr = parse(pr_payload(12, head_ref="fix"))
    assert plan_branch(pr, remote="upstream").remote_tracking_ref == "upstream/fix"


def test_apply_same_repo_plan_runs_fetch_checkout_upstream():
    pr = parse(pr_payload(12, head_ref="feature-x"))
    git = Mock(spec=Git)

    apply_plan(plan_branch(pr), git)

    assert git.mock_calls == [
        call.fetch("origin", "+refs/heads/feature-x:refs/remotes/origin/feature-x"),
        call.checkout("feature-x", start_point="refs/remotes/origin/feature-x"),
        call.set_upstream("origin/feature-x", "feature-x"),
    ]


def test_apply_fork_plan_sets_no_upstream():
    pr = parse(pr_payload(12, head_repo="mallory/widgets", head_owner="mallory"))
    git = Mock(spec=Git)

    apply_plan(plan_branch(pr), git)

    git.set_upstream.assert_not_called()
    git.checkout.assert_called_once_with("mallory-pr-12", start_point="FETCH_HEAD")


def test_apply_stops_on_fetch_failure():
    pr = parse(pr_payload(12, head_repo="mallory/widgets", head_owner="mallory"))
    git = Mock(spec=Git)
    git.fetch.side_effect = GitCommandError(["fetch", "origin", "x"], 128)

    with pytest.raises(GitCommandError, match="exit code 128"):
        apply_plan(plan_branch(pr), git)

    git.checkout.assert_not_called()


def test_git_run_raises_on_nonzero_exit(monkeypatch):
    completed = Mock(returncode=1, stdout="")
    run = Mock(return_value=completed)
    monkeypatch.setattr("gitpr.git.subprocess.run", run)

    with pytest.raises(GitCommandError):
        Git().checkout("nope")

    assert run.call_args.args[0] == ["git", "checkout", "nope"]


def test_git_get_remote_url_captures_stdout(monkeypatch):
    completed = Mock(returncode=0, stdout="git@github.com:octo/widgets.git\n")
    monkeypatch.setattr("gitpr.git.subprocess.run", Mock(return_value=completed))

    assert Git().get_remote_url() == "git@github.com:octo/widgets.git"


def test_git_checkout_with_start_point_resets_branch(monkeypatch):
    run = Mock(return_value=Mock(returncode=0, stdout=""))
    monkeypatch.setattr("gitpr.git.subprocess.run", run)

    Git().checkout("feature-x", start_point="refs/remotes/origin/feature-x")

    assert run.call_args.args[0] == [
        "git", "checkout", "-B", "feature-x", "refs/remotes/origin/feature-x",
    ]


# Pulling against real repositories: a local "origin" and a clone of it.

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


def git(cwd, *args):
    result = subprocess.run(
        ["git", *args], cwd=cwd, check=True, capture_output=True, text=True
    )
    return result.stdout.strip()


def commit(repo, filename, content, *extra):
    (repo / filename).write_text(content)
    git(repo, "add", filename)
    git(repo, "commit", "-q", "-m", f"Update {filename}", *extra)
    return git(repo, "rev-parse", "HEAD")


@pytest.fixture
def repos(tmp_path, monkeypatch):
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(tmp_path / "gitconfig"))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    for var in ("GIT_AUTHOR_NAME", "GIT_COMMITTER_NAME"):
        monkeypatch.setenv(var, "Test")
    for var in ("GIT_AUTHOR_EMAIL", "GIT_COMMITTER_EMAIL"):
        monkeypatch.setenv(var, "test@example.com")

    origin = tmp_path / "origin"
    origin.mkdir()
    git(origin, "init", "-q")
    git(origin, "symbolic-ref", "HEAD", "refs/heads/main")
    commit(origin, "README", "widgets\n")
    git(origin, "checkout", "-q", "-b", "feature-x")
    commit(origin, "feature.txt", "one\n")
    git(origin, "checkout", "-q", "main")

    git(tmp_path, "clone", "-q", str(origin), "clone")
    return origin, tmp_path / "clone"


@requires_git
def test_same_repo_pull_repeats_after_new_and_force_pushed_commits(repos):
    origin, clone = repos
    plan = plan_branch(parse(pr_payload(12, head_ref="feature-x")))
    local = Git(cwd=clone)

    apply_plan(plan, local)
    assert git(clone, "rev-parse", "HEAD") == git(origin, "rev-parse", "feature-x")
    assert git(clone, "rev-parse", "--abbrev-ref", "HEAD") == "feature-x"
    assert git(clone, "rev-parse", "--abbrev-ref", "feature-x@{upstream}") == "origin/feature-x"

    git(origin, "checkout", "-q", "feature-x")
    new_tip = commit(origin, "feature.txt", "two\n")

    # Still on feature-x from the first pull
    apply_plan(plan, local)
    assert git(clone, "rev-parse", "HEAD") == new_tip

    amended_tip = commit(origin, "feature.txt", "two, amended\n", "--amend")

    apply_plan(plan, local)
    assert git(clone, "rev-parse", "HEAD") == amended_tip
    assert (clone / "feature.txt").read_text() == "two, amended\n"
    assert git(clone, "rev-parse", "--abbrev-ref", "feature-x@{upstream}") == "origin/feature-x"


@requires_git
def test_fork_pull_repeats_after_new_and_force_pushed_commits(repos):
    origin, clone = repos
    git(origin, "checkout", "-q", "-b", "fork-work", "main")
    tip = commit(origin, "fork.txt", "one\n")
    git(origin, "update-ref", "refs/pull/7/head", tip)
    plan = plan_branch(parse(pr_payload(7, head_repo="mallory/widgets", head_owner="mallory")))
    local = Git(cwd=clone)

    apply_plan(plan, local)
    assert git(clone, "rev-parse", "HEAD") == tip
    assert git(clone, "rev-parse", "--abbrev-ref", "HEAD") == "mallory-pr-7"

    new_tip = commit(origin, "fork.txt", "two\n")
    git(origin, "update-ref", "refs/pull/7/head", new_tip)

    apply_plan(plan, local)
    assert git(clone, "rev-parse", "HEAD") == new_tip

    amended_tip = commit(origin, "fork.txt", "two, amended\n", "--amend")
    git(origin, "update-ref", "refs/pull/7/head", amended_tip)

    apply_plan(plan, local)
    assert git(clone, "rev-parse", "HEAD") == amended_tip

    upstream = subprocess.run(
        ["git", "config", "--get", "branch.mallory-pr-7.merge"],
        cwd=clone, capture_output=True, text=True,
    )
    assert upstream.returncode != 0
