"""
git-pr CLI - Work with GitHub pull requests from the terminal.

Commands:
    list           - List open pull requests
    show-details   - Show a PR's commits and the files each changed
    show-diff      - Diff a pulled PR branch against its base branch
    pull           - Fetch and checkout a PR branch
    submit-review  - Approve, request changes (and close), or comment
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import NoReturn

import click
from dotenv import load_dotenv
from loguru import logger
from rich.console import Console

# Load .env file from current directory or repo root
load_dotenv()  # Loads from current directory
load_dotenv(Path.cwd() / ".env")  # Explicit current dir
# Also try repo root
from .config import get_repo_root
load_dotenv(get_repo_root() / ".env")

from . import __version__
from .config import GitPrConfig
from .errors import GitPrError
from .git import Git, GitCommandError
from .providers import SourceControlProvider, get_provider
from .render import (
    age_in_days,
    build_detail_table,
    build_list_table,
    detail_rows,
    list_rows,
)
from .review import ReviewEvent, ReviewFlagError, event_from_flags


DEFAULT_REVIEW_MESSAGE = "Looks good to me."


class InterceptHandler(logging.Handler):
    """Intercept standard logging messages toward Loguru sinks."""
    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def _echo_stderr(message: str) -> None:
    click.echo(message, err=True, nl=False)


def setup_logging(debug: bool) -> None:
    """Route library logging to stderr; DEBUG traces only in debug mode."""
    logger.remove()
    logger.add(
        _echo_stderr,
        level="DEBUG" if debug else "WARNING",
        colorize=False,
        format="{level.icon}  [{level}] {name}: {message}" if debug else "{level.icon}  {message}",
    )
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    # Third-party chatter stays out of the debug trace
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def _fail(message: str) -> NoReturn:
    click.echo(f"❌ {message}", err=True)
    sys.exit(1)


def _load_provider(ctx: click.Context) -> SourceControlProvider:
    """Build config, locate the remote and pick its provider, or exit 1."""
    try:
        config = GitPrConfig.load(get_repo_root())
    except GitPrError as e:
        _fail(f"Configuration error: {e}")

    config.debug = config.debug or ctx.obj.get("debug", False)
    setup_logging(config.debug)

    git = Git()
    try:
        remote_url = git.get_remote_url(config.remote)
    except GitCommandError:
        _fail(f"Could not determine remote {config.remote} URL.")

    try:
        return get_provider(remote_url, config, git=git)
    except GitPrError as e:
        _fail(f"Provider error: {e}")


@click.group()
@click.version_option(version=__version__)
@click.option("--debug", is_flag=True, help="Print request and git traces to stderr")
@click.pass_context
def main(ctx: click.Context, debug: bool):
    """git-pr - Work with GitHub pull requests from the terminal."""
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


@main.command("list")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def list_command(ctx: click.Context, as_json: bool):
    """List all currently open pull requests, youngest first."""
    provider = _load_provider(ctx)
    now = datetime.now(timezone.utc)

    try:
        prs = provider.list_pull_requests(now=now)
    except GitPrError as e:
        _fail(f"Error listing PRs: {e}")

    if as_json:
        click.echo(json.dumps([
            {**pr.to_dict(), "age_days": age_in_days(pr.created_at, now)}
            for pr in prs
        ], indent=2))
        return

    if not prs:
        click.echo("ℹ️  No open pull requests found.")
        return

    rows = list_rows(prs, now=now, wrap_width=provider.config.listing.wrap_width)
    Console().print(build_list_table(rows))


@main.command("show-details")
@click.argument("pr_number", type=int)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def show_details(ctx: click.Context, pr_number: int, as_json: bool):
    """Show a PR's metadata, commits and the files each commit changed."""
    provider = _load_provider(ctx)

    try:
        report = provider.show_pull_request_details(pr_number)
    except GitPrError as e:
        _fail(f"Error showing PR details: {e}")

    if as_json:
        click.echo(json.dumps({
            "pull_request": report.detail.to_dict(),
            "commits": [{"sha": c.sha, "files": c.files} for c in report.commits],
        }, indent=2))
        return

    Console().print(build_detail_table(detail_rows(report.detail, report.commits)))


@main.command("show-diff")
@click.argument("pr_number", type=int)
@click.pass_context
def show_diff(ctx: click.Context, pr_number: int):
    """Show the diff of a pulled PR branch against its base branch."""
    provider = _load_provider(ctx)
    click.echo(click.style(f"🔍 Showing diff for PR #{pr_number}...", fg="green"))

    try:
        provider.show_diff(pr_number)
    except GitPrError as e:
        _fail(f"Failed to display diff: {e}")


@main.command()
@click.argument("pr_number", type=int)
@click.pass_context
def pull(ctx: click.Context, pr_number: int):
    """Fetch a PR and check out its branch locally."""
    provider = _load_provider(ctx)
    click.echo(click.style(f"📥 Pulling PR #{pr_number}...", fg="green"))

    try:
        plan = provider.pull(pr_number)
    except GitPrError as e:
        _fail(f"Failed to pull PR #{pr_number}: {e}")

    branch = click.style(plan.local_branch, fg="green")
    if plan.is_fork:
        click.echo(f"✅ Switched to branch {branch}")
        click.echo(
            f"This branch is a read-only checkout of PR #{pr_number}, since it comes from a fork."
        )
    else:
        click.echo(f"✅ Switched to branch {branch} tracking {plan.remote_tracking_ref}")


@main.command("submit-review")
@click.argument("pr_number", type=int)
@click.option("-m", "--message", default=DEFAULT_REVIEW_MESSAGE, show_default=True,
              help="Review message")
@click.option("--approve", is_flag=True, help="Approve the pull request (default)")
@click.option("--reject", is_flag=True, help="Request changes and close the pull request")
@click.option("--comment-only", is_flag=True, help="Comment without approving")
@click.pass_context
def submit_review(
    ctx: click.Context,
    pr_number: int,
    message: str,
    approve: bool,
    reject: bool,
    comment_only: bool,
):
    """Submit a review for a PR.

    Examples:

        git pr submit-review 4 -m "Looks good to me" --approve

        git pr submit-review 4 -m "Not good" --reject

        git pr submit-review 4 -m "Some thoughts" --comment-only
    """
    try:
        event = event_from_flags(approve, reject, comment_only)
    except ReviewFlagError as e:
        raise click.UsageError(str(e)) from e

    provider = _load_provider(ctx)

    if event is ReviewEvent.REQUEST_CHANGES:
        click.echo(f"📝 Submitting REQUEST_CHANGES review and closing PR #{pr_number}...")
    elif not (approve or comment_only):
        click.echo(f"📝 No review flag specified, defaulting to APPROVE for PR #{pr_number}...")
    else:
        click.echo(f"📝 Submitting {event.value} review for PR #{pr_number}...")

    try:
        provider.submit_review(pr_number, message, event)
    except GitPrError as e:
        _fail(f"Error submitting review: {e}")
    click.echo(f"✅ Review submitted successfully for PR #{pr_number}")

    if event is not ReviewEvent.REQUEST_CHANGES:
        return

    # Not transactional: the review stays in place if closing fails
    try:
        provider.close_pull_request(pr_number)
    except GitPrError as e:
        _fail(f"Review submitted but failed to close PR #{pr_number}: {e}")
    click.echo(f"✅ PR #{pr_number} successfully closed.")


if __name__ == "__main__":
    main()
