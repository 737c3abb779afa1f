"""
Display shaping for pull request listings and detail views.

Turns aggregated API data into table rows (plain dataclasses, easy to test)
and then into Rich tables for the terminal.
"""

from __future__ import annotations

import textwrap
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any

from rich import box
from rich.table import Table

from .github import Commit, PullRequestDetail


PLACEHOLDER = "-"
DEFAULT_WRAP_WIDTH = 60


def age_in_days(created_at: datetime, now: datetime | None = None) -> int:
    """Whole days elapsed since created_at (floored, never negative)."""
    now = now or datetime.now(timezone.utc)
    return max((now - created_at).days, 0)


def format_age(days: int) -> str:
    if days == 0:
        return "today"
    return f"{days}d"


def format_labels(labels: list[str]) -> str:
    if not labels:
        return PLACEHOLDER
    return ", ".join(labels)


def wrap_description(body: str | None, width: int = DEFAULT_WRAP_WIDTH) -> str:
    """Wrap text to width without breaking words, keeping existing line breaks."""
    text = body if body else PLACEHOLDER
    lines = []
    for line in text.splitlines():
        if not line.strip():
            lines.append("")
            continue
        lines.extend(
            textwrap.wrap(line, width=width, break_long_words=False) or [""]
        )
    return "\n".join(lines)


@dataclass
class ListRow:
    number: str
    title: str
    author: str
    age: str
    commits: str
    files: str
    labels: str
    description: str


@dataclass
class DetailRow:
    pr_number: str
    title: str
    status: str
    age: str
    author: str
    commit_sha: str
    changed_files: str


LIST_COLUMNS = (
    ("Number", "cyan"),
    ("Title", "green"),
    ("Author", "yellow"),
    ("Age", "magenta"),
    ("Total Commits", "white"),
    ("Number of Changed Files", "white"),
    ("Labels", "blue"),
    ("Description", "white"),
)

DETAIL_COLUMNS = (
    ("PR Number", "cyan"),
    ("Title", "green"),
    ("Status", "magenta"),
    ("Age", "magenta"),
    ("Authors", "yellow"),
    ("Commit SHA", "white"),
    ("Changed Files", "blue"),
)


def list_rows(
    prs: list[PullRequestDetail],
    now: datetime | None = None,
    wrap_width: int = DEFAULT_WRAP_WIDTH,
) -> list[ListRow]:
    """One row per PR, in the order given."""
    return [
        ListRow(
            number=f"#{pr.number}",
            title=pr.title,
            author=pr.author,
            age=format_age(age_in_days(pr.created_at, now)),
            commits=str(pr.commit_count),
            files=str(pr.changed_file_count),
            labels=format_labels(pr.labels),
            description=wrap_description(pr.body, wrap_width),
        )
        for pr in prs
    ]


def detail_rows(
    pr: PullRequestDetail,
    commits: list[Commit],
    now: datetime | None = None,
) -> list[DetailRow]:
    """
    One row per commit; PR-level fields appear on the first row only.

    When no commit survived enrichment a single row carries the PR-level
    fields with blank commit columns.
    """
    heading = DetailRow(
        pr_number=f"#{pr.number}",
        title=pr.title,
        status=pr.state.value,
        age=format_age(age_in_days(pr.created_at, now)),
        author=pr.author,
        commit_sha="",
        changed_files="",
    )
    if not commits:
        return [heading]

    rows = []
    for i, commit in enumerate(commits):
        if i == 0:
            row = heading
        else:
            row = DetailRow("", "", "", "", "", "", "")
        row.commit_sha = commit.short_sha
        row.changed_files = ", ".join(commit.files)
        rows.append(row)
    return rows


def rows_as_dicts(rows: list[Any]) -> list[dict[str, Any]]:
    return [asdict(row) for row in rows]


def build_table(columns: tuple[tuple[str, str], ...], rows: list[Any]) -> Table:
    """Create a rounded Rich table with one column per (header, style)."""
    table = Table(box=box.ROUNDED, header_style="bold", show_lines=True)
    for header, style in columns:
        table.add_column(header, style=style, overflow="fold")
    for row in rows:
        table.add_row(*(str(value) for value in asdict(row).values()))
    return table


def build_list_table(rows: list[ListRow]) -> Table:
    return build_table(LIST_COLUMNS, rows)


def build_detail_table(rows: list[DetailRow]) -> Table:
    return build_table(DETAIL_COLUMNS, rows)
