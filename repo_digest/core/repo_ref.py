"""Parsing of GitHub repository identifiers.

Repositories are given either as an explicit owner/name pair or as a URL of
the form ``github.com[/:]<owner>/<name>[.git][/]`` (HTTPS and SSH remotes
both match). Parsing never touches the network.
"""

from __future__ import annotations

from dataclasses import dataclass
import re

from .errors import ValidationError
from .types import RepositoryRef


_SEGMENT = r"[A-Za-z0-9_.-]+"
_URL_RE = re.compile(rf"(?:^|[/@.])github\.com[/:](?P<owner>{_SEGMENT})/(?P<name>{_SEGMENT}?)(?:\.git)?/?$")
_SEGMENT_RE = re.compile(rf"^{_SEGMENT}$")


@dataclass(frozen=True)
class Parsed:
    """Successful parse result."""
    owner: str
    name: str

    def to_ref(self) -> RepositoryRef:
        return RepositoryRef(owner=self.owner, name=self.name)


@dataclass(frozen=True)
class Invalid:
    """Failed parse result with the reason."""
    value: str
    reason: str


ParseResult = Parsed | Invalid


def parse_repository_url(value: str) -> ParseResult:
    """Parse a GitHub repository URL into owner and name.

    Examples:
        >>> parse_repository_url("https://github.com/psf/requests.git")
        Parsed(owner='psf', name='requests')
        >>> parse_repository_url("not-a-url")
        Invalid(value='not-a-url', reason='not a github.com repository URL')
    """
    text = (value or "").strip()
    match = _URL_RE.search(text)
    if match is None:
        return Invalid(value=value, reason="not a github.com repository URL")
    owner, name = match.group("owner"), match.group("name")
    if not name or name in (".", ".."):
        return Invalid(value=value, reason="missing repository name")
    return Parsed(owner=owner, name=name)


def parse_repository_parts(owner: str | None, name: str | None) -> ParseResult:
    """Validate an explicit owner/name pair."""
    owner = (owner or "").strip()
    name = (name or "").strip()
    if name.endswith(".git"):
        name = name[: -len(".git")]
    if not owner or not name:
        return Invalid(value=f"{owner}/{name}", reason="owner and name are both required")
    if not _SEGMENT_RE.match(owner) or not _SEGMENT_RE.match(name):
        return Invalid(value=f"{owner}/{name}", reason="owner or name contains invalid characters")
    return Parsed(owner=owner, name=name)


def resolve_repository(
    url: str | None = None,
    owner: str | None = None,
    name: str | None = None,
) -> RepositoryRef:
    """Build a RepositoryRef from a URL or an owner/name pair.

    Raises:
        ValidationError: If neither form is given or the value does not parse
    """
    if url:
        result = parse_repository_url(url)
    elif owner or name:
        result = parse_repository_parts(owner, name)
    else:
        raise ValidationError("A repository URL or owner/name pair is required")

    if isinstance(result, Invalid):
        raise ValidationError(f"Invalid repository reference {result.value!r}: {result.reason}")
    return result.to_ref()
