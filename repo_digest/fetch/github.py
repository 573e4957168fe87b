"""
GitHub change collection.

``ChangeCollector`` gathers commits, pull requests and releases for one
repository since a cutoff instant using three independent paginated passes
(open and closed pull requests are two passes over the same endpoint).
Items are normalized into the core dataclasses and deduplicated; ordering is
left to the synthesizer.
"""

from __future__ import annotations

from datetime import datetime, timezone
import logging
from typing import Any, Callable, Iterable, TypeVar

import httpx

from ..config import GitHubConfig
from ..core.errors import TransportError
from ..core.types import Commit, PullRequest, Release, RepositoryChangeSet, RepositoryRef
from ..logging_utils import log_event
from .pagination import Page, paginate


T = TypeVar("T")


def build_github_client(token: str, cfg: GitHubConfig | None = None) -> httpx.Client:
    """Create an httpx client preconfigured for the GitHub REST API."""
    cfg = cfg or GitHubConfig()
    return httpx.Client(
        base_url=cfg.api_url.rstrip("/") + "/",
        headers={
            "Authorization": f"token {token}",
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": cfg.user_agent,
        },
        timeout=cfg.timeout_seconds,
        follow_redirects=True,
    )


class ChangeCollector:
    """Collect recent activity for a repository from the GitHub REST API."""

    def __init__(
        self,
        client: httpx.Client,
        per_page: int = 100,
        logger: logging.Logger | None = None,
    ) -> None:
        self.client = client
        self.per_page = per_page
        self.logger = logger

    def collect(self, repo: RepositoryRef, since: datetime) -> RepositoryChangeSet:
        """Fetch commits, pull requests and releases newer than ``since``.

        Raises:
            AuthError: If GitHub rejects the token
            TransportError: On network failure or unexpected HTTP status
        """
        since = _as_utc(since)
        changes = RepositoryChangeSet(
            repo=repo,
            since=since,
            commits=self.fetch_commits(repo, since),
            pull_requests=self.fetch_pull_requests(repo, since),
            releases=self.fetch_releases(repo, since),
        )
        log_event(
            self.logger,
            "Collected changes",
            event="changes_collected",
            repo=repo.key,
            since=since.isoformat(),
            commits=len(changes.commits),
            pull_requests=len(changes.pull_requests),
            releases=len(changes.releases),
        )
        return changes

    def fetch_commits(self, repo: RepositoryRef, since: datetime) -> list[Commit]:
        # GitHub applies ``since`` server-side; results are trusted as-is.
        raw = paginate(
            self.client,
            _repo_path(repo, "commits"),
            params={"since": format_instant(since), "per_page": self.per_page},
            logger=self.logger,
        )
        commits = [_commit_from_payload(item) for item in raw]
        return _unique_by(commits, lambda commit: commit.sha)

    def fetch_pull_requests(self, repo: RepositoryRef, since: datetime) -> list[PullRequest]:
        since = _as_utc(since)
        pulls: list[PullRequest] = []
        for state in ("open", "closed"):
            raw = paginate(
                self.client,
                _repo_path(repo, "pulls"),
                params={
                    "state": state,
                    "sort": "updated",
                    "direction": "desc",
                    "per_page": self.per_page,
                },
                # Sorted by update time, so once a page ends at the cutoff
                # every later page is older still.
                stop_when=lambda page: _is_stale(page[-1].get("updated_at"), since),
                logger=self.logger,
            )
            pulls.extend(_pull_from_payload(item) for item in raw)
        recent = [pull for pull in pulls if pull.updated_at > since]
        return _unique_by(recent, lambda pull: pull.number)

    def fetch_releases(self, repo: RepositoryRef, since: datetime) -> list[Release]:
        since = _as_utc(since)
        raw = paginate(
            self.client,
            _repo_path(repo, "releases"),
            params={"per_page": self.per_page},
            stop_when=lambda page: _page_entirely_stale(page, "published_at", since),
            logger=self.logger,
        )
        # Draft releases have no publication time and are never reported.
        releases = [_release_from_payload(item) for item in raw if item.get("published_at")]
        recent = [release for release in releases if release.published_at > since]
        return _unique_by(recent, lambda release: release.tag)


def format_instant(value: datetime) -> str:
    """Format an instant as the ISO 8601 UTC form GitHub expects."""
    return _as_utc(value).strftime("%Y-%m-%dT%H:%M:%SZ")


def parse_instant(value: str | None) -> datetime | None:
    """Parse a GitHub timestamp (``2024-05-01T12:00:00Z``) into an aware datetime."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as exc:
        raise TransportError(f"Unparseable timestamp from GitHub: {value!r}") from exc
    return _as_utc(parsed)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _repo_path(repo: RepositoryRef, collection: str) -> str:
    return f"repos/{repo.owner}/{repo.name}/{collection}"


def _is_stale(value: str | None, since: datetime) -> bool:
    instant = parse_instant(value)
    return instant is None or instant <= since


def _page_entirely_stale(page: Page, field_name: str, since: datetime) -> bool:
    return all(_is_stale(item.get(field_name), since) for item in page)


def _unique_by(items: Iterable[T], key: Callable[[T], Any]) -> list[T]:
    seen: set[Any] = set()
    kept: list[T] = []
    for item in items:
        item_key = key(item)
        if item_key in seen:
            continue
        seen.add(item_key)
        kept.append(item)
    return kept


def _required_instant(payload: dict[str, Any], value: str | None, field_name: str) -> datetime:
    instant = parse_instant(value)
    if instant is None:
        raise TransportError(f"GitHub payload is missing {field_name}: {payload.get('url', payload)!r}")
    return instant


def _commit_from_payload(payload: dict[str, Any]) -> Commit:
    commit = payload.get("commit") or {}
    author = commit.get("author") or {}
    return Commit(
        sha=payload["sha"],
        message=commit.get("message") or "",
        author_name=author.get("name") or (payload.get("author") or {}).get("login") or "unknown",
        author_date=_required_instant(payload, author.get("date"), "commit.author.date"),
        url=payload.get("html_url") or "",
    )


def _pull_from_payload(payload: dict[str, Any]) -> PullRequest:
    return PullRequest(
        number=int(payload["number"]),
        title=payload.get("title") or "",
        state=payload.get("state") or "open",
        created_at=_required_instant(payload, payload.get("created_at"), "created_at"),
        updated_at=_required_instant(payload, payload.get("updated_at"), "updated_at"),
        merged_at=parse_instant(payload.get("merged_at")),
        author_login=(payload.get("user") or {}).get("login") or "unknown",
        url=payload.get("html_url") or "",
    )


def _release_from_payload(payload: dict[str, Any]) -> Release:
    tag = payload["tag_name"]
    return Release(
        tag=tag,
        name=payload.get("name") or tag,
        published_at=_required_instant(payload, payload.get("published_at"), "published_at"),
        url=payload.get("html_url") or "",
        body=payload.get("body") or "",
        prerelease=bool(payload.get("prerelease")),
    )
