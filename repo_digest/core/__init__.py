"""
Core domain models and business logic.

This package contains data types, errors, repository parsing and
publication state that are independent of any specific pipeline stage.
"""

from .errors import AuthError, ConfigError, DigestError, PublishError, TransportError, ValidationError
from .repo_ref import Invalid, Parsed, parse_repository_parts, parse_repository_url, resolve_repository
from .tracker import PublicationTracker
from .types import (
    ArticleDraft,
    Commit,
    PublishedPost,
    PullRequest,
    Release,
    RepositoryChangeSet,
    RepositoryRef,
)

__all__ = [
    "ArticleDraft",
    "AuthError",
    "Commit",
    "ConfigError",
    "DigestError",
    "Invalid",
    "Parsed",
    "PublicationTracker",
    "PublishError",
    "PublishedPost",
    "PullRequest",
    "Release",
    "RepositoryChangeSet",
    "RepositoryRef",
    "TransportError",
    "ValidationError",
    "parse_repository_parts",
    "parse_repository_url",
    "resolve_repository",
]
