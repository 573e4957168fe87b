"""
Article synthesis from a repository change set.

This module turns a ``RepositoryChangeSet`` into the HTML body of a blog
post using a Jinja2 template. Synthesis is pure: the same change set always
renders to the same HTML, and no clock value is embedded.

Sections, each emitted only when it has content:
1. Header with the repository name and the since-date
2. Releases (newest 5, with a short notes preview)
3. Merged pull requests (newest 10 by merge time)
4. Open pull requests (5 most recently updated)
5. Commit summary (total count plus the 5 newest commits)
6. Footer linking back to the repository
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from ..core.types import Commit, PullRequest, Release, RepositoryChangeSet


MAX_RELEASES = 5
MAX_MERGED_PULLS = 10
MAX_OPEN_PULLS = 5
MAX_COMMITS = 5
PREVIEW_MAX_LINES = 3
PREVIEW_MAX_CHARS = 200

_ENV = Environment(
    loader=FileSystemLoader(str(Path(__file__).parent / "templates")),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
)


def human_date(value: datetime) -> str:
    """Format a date like "March 5, 2024"."""
    return f"{value:%B} {value.day}, {value.year}"


def release_preview(body: str) -> str:
    """Build a one-paragraph preview of release notes.

    Takes the first three lines, joins them with single spaces and cuts the
    result to 200 characters, appending "..." when anything was cut.
    """
    if not body:
        return ""
    preview = " ".join(body.splitlines()[:PREVIEW_MAX_LINES])
    if len(preview) > PREVIEW_MAX_CHARS:
        return preview[:PREVIEW_MAX_CHARS] + "..."
    return preview


def first_line(message: str) -> str:
    lines = message.splitlines()
    return lines[0] if lines else ""


def select_releases(releases: list[Release]) -> list[Release]:
    return sorted(releases, key=lambda r: r.published_at, reverse=True)[:MAX_RELEASES]


def select_merged_pulls(pulls: list[PullRequest]) -> list[PullRequest]:
    merged = [p for p in pulls if p.is_merged]
    return sorted(merged, key=lambda p: p.merged_at, reverse=True)[:MAX_MERGED_PULLS]


def select_open_pulls(pulls: list[PullRequest]) -> list[PullRequest]:
    opened = [p for p in pulls if p.state == "open"]
    return sorted(opened, key=lambda p: p.updated_at, reverse=True)[:MAX_OPEN_PULLS]


def select_recent_commits(commits: list[Commit]) -> list[Commit]:
    return sorted(commits, key=lambda c: c.author_date, reverse=True)[:MAX_COMMITS]


def synthesize(changes: RepositoryChangeSet) -> str:
    """Render the article body for a change set."""
    template = _ENV.get_template("article.html")
    return template.render(
        repo=changes.repo,
        since=human_date(changes.since),
        releases=[
            {
                "name": release.name,
                "url": release.url,
                "prerelease": release.prerelease,
                "date": human_date(release.published_at),
                "preview": release_preview(release.body),
            }
            for release in select_releases(changes.releases)
        ],
        merged_pulls=[
            {
                "number": pull.number,
                "title": pull.title,
                "url": pull.url,
                "author": pull.author_login,
                "date": human_date(pull.merged_at),
            }
            for pull in select_merged_pulls(changes.pull_requests)
        ],
        open_pulls=[
            {
                "number": pull.number,
                "title": pull.title,
                "url": pull.url,
                "author": pull.author_login,
                "date": human_date(pull.updated_at),
            }
            for pull in select_open_pulls(changes.pull_requests)
        ],
        commit_count=len(changes.commits),
        commits=[
            {
                "sha": commit.sha[:7],
                "summary": first_line(commit.message),
                "url": commit.url,
                "author": commit.author_name,
                "date": human_date(commit.author_date),
            }
            for commit in select_recent_commits(changes.commits)
        ],
    )


class ContentSynthesizer:
    """Object wrapper around ``synthesize`` for injection into the pipeline."""

    def synthesize(self, changes: RepositoryChangeSet) -> str:
        return synthesize(changes)
