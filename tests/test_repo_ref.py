"""Tests for repository identifier parsing."""

import pytest

from repo_digest.core.errors import ValidationError
from repo_digest.core.repo_ref import (
    Invalid,
    Parsed,
    parse_repository_parts,
    parse_repository_url,
    resolve_repository,
)
from repo_digest.core.types import RepositoryRef


@pytest.mark.parametrize(
    "url",
    [
        "https://github.com/octo-org/hello.world",
        "https://github.com/octo-org/hello.world/",
        "https://github.com/octo-org/hello.world.git",
        "git@github.com:octo-org/hello.world.git",
        "github.com/octo-org/hello.world",
        "https://www.github.com/octo-org/hello.world",
    ],
)
def test_parse_repository_url_accepts_common_forms(url):
    assert parse_repository_url(url) == Parsed(owner="octo-org", name="hello.world")


@pytest.mark.parametrize(
    "url",
    [
        "not-a-url",
        "",
        "https://gitlab.com/octo/repo",
        "https://notgithub.com/octo/widgets",
        "https://github.com/octo",
        "https://github.com/a/b/tree/main",
    ],
)
def test_parse_repository_url_rejects_malformed(url):
    result = parse_repository_url(url)
    assert isinstance(result, Invalid)
    assert result.reason


def test_parse_repository_parts_strips_git_suffix():
    assert parse_repository_parts(" octo ", "repo.git") == Parsed(owner="octo", name="repo")


def test_parse_repository_parts_rejects_missing_or_bad_segments():
    assert isinstance(parse_repository_parts("octo", ""), Invalid)
    assert isinstance(parse_repository_parts("oc to", "repo"), Invalid)


def test_resolve_repository_returns_ref_with_key():
    ref = resolve_repository(url="https://github.com/psf/requests")
    assert ref == RepositoryRef(owner="psf", name="requests")
    assert ref.key == "psf/requests"
    assert ref.html_url == "https://github.com/psf/requests"


def test_resolve_repository_raises_validation_error():
    with pytest.raises(ValidationError, match="not-a-url"):
        resolve_repository(url="not-a-url")
    with pytest.raises(ValidationError):
        resolve_repository()
