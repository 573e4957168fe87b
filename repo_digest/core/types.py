"""
Core data types for repo-digest.

This module defines the data structures passed between pipeline stages:
- RepositoryRef: An owner/name pair identifying one GitHub repository
- Commit, PullRequest, Release: Normalized GitHub activity items
- RepositoryChangeSet: All activity collected for one repository since a cutoff
- ArticleDraft: The synthesized article handed to the publisher
- PublishedPost: The identifier/link returned by the publisher
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class RepositoryRef:
    """Identifies a GitHub repository.

    Attributes:
        owner: The user or organization owning the repository
        name: The repository name
    """
    owner: str
    name: str

    @property
    def key(self) -> str:
        """The "owner/name" key used to index publication state."""
        return f"{self.owner}/{self.name}"

    @property
    def html_url(self) -> str:
        return f"https://github.com/{self.owner}/{self.name}"


@dataclass
class Commit:
    """A commit on the default branch.

    Attributes:
        sha: The commit hash (unique id)
        message: Full commit message, possibly multi-line
        author_name: Name recorded in the commit author field
        author_date: When the commit was authored
        url: Link to the commit on github.com
    """
    sha: str
    message: str
    author_name: str
    author_date: datetime
    url: str


@dataclass
class PullRequest:
    """A pull request in either state.

    ``merged_at`` is set only for merged pull requests, so a closed pull
    request without it was closed without merging.

    Attributes:
        number: Pull request number (unique within the repository)
        title: Pull request title
        state: "open" or "closed"
        created_at: Creation time
        updated_at: Time of last update
        merged_at: Merge time, or None when not merged
        author_login: GitHub login of the author
        url: Link to the pull request on github.com
    """
    number: int
    title: str
    state: str
    created_at: datetime
    updated_at: datetime
    merged_at: datetime | None
    author_login: str
    url: str

    @property
    def is_merged(self) -> bool:
        return self.state == "closed" and self.merged_at is not None


@dataclass
class Release:
    """A published release.

    Attributes:
        tag: Git tag name (unique id)
        name: Display name, falls back to the tag
        published_at: Publication time
        url: Link to the release page
        body: Release notes, may be empty
        prerelease: Whether the release is marked as a pre-release
    """
    tag: str
    name: str
    published_at: datetime
    url: str
    body: str = ""
    prerelease: bool = False


@dataclass
class RepositoryChangeSet:
    """Activity collected for one repository since a cutoff instant.

    Releases and pull requests are strictly newer than ``since``; commits are
    trusted as returned by the server's own ``since`` filter.
    """
    repo: RepositoryRef
    since: datetime
    commits: list[Commit] = field(default_factory=list)
    pull_requests: list[PullRequest] = field(default_factory=list)
    releases: list[Release] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.commits or self.pull_requests or self.releases)


POST_STATUSES = ("publish", "draft", "private")


@dataclass(frozen=True)
class ArticleDraft:
    """A synthesized article ready to be previewed or published."""
    title: str
    status: str
    tags: frozenset[str]
    categories: frozenset[str]
    body_html: str


@dataclass(frozen=True)
class PublishedPost:
    """Identifier and permalink of a post created by the publisher."""
    id: int
    link: str
