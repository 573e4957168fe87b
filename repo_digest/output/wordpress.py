"""
Publishing to WordPress via the core REST API.

Posts are created with ``POST /wp-json/wp/v2/posts`` using basic
authentication with an application password. Tag and category names are
resolved to term ids first, creating terms that do not exist yet.
"""

from __future__ import annotations

import html
import logging
from typing import Any, Iterable

import httpx

from ..core.errors import AuthError, PublishError, TransportError
from ..core.types import ArticleDraft, PublishedPost
from ..logging_utils import log_event


AUTH_STATUS_CODES = (401, 403)


def api_base(site_url: str) -> str:
    """Normalize a site URL to its ``/wp-json/wp/v2`` API root."""
    base = site_url.rstrip("/")
    if base.endswith("/wp-json/wp/v2"):
        return base
    return f"{base}/wp-json/wp/v2"


class WordPressPublisher:
    """Create posts on a WordPress site."""

    def __init__(
        self,
        site_url: str,
        username: str,
        password: str,
        client: httpx.Client | None = None,
        timeout_seconds: float = 20.0,
        logger: logging.Logger | None = None,
    ) -> None:
        self.api_url = api_base(site_url)
        self.client = client or httpx.Client(timeout=timeout_seconds, follow_redirects=True)
        self.auth = httpx.BasicAuth(username, password)
        self.logger = logger

    def publish(self, draft: ArticleDraft) -> PublishedPost:
        """Create a post from ``draft`` and return its id and permalink.

        Raises:
            AuthError: If WordPress rejects the credentials
            PublishError: If WordPress rejects the post
            TransportError: On network failure
        """
        payload = {
            "title": draft.title,
            "content": draft.body_html,
            "status": draft.status,
            "tags": self.resolve_terms("tags", draft.tags),
            "categories": self.resolve_terms("categories", draft.categories),
        }
        data = self._request("POST", "posts", idempotent=False, json=payload)
        try:
            post = PublishedPost(id=int(data["id"]), link=str(data.get("link") or ""))
        except (KeyError, TypeError, ValueError) as exc:
            raise PublishError(f"WordPress returned an unexpected post payload: {data!r}") from exc
        log_event(self.logger, "Post published", event="post_published", post_id=post.id, link=post.link)
        return post

    def resolve_terms(self, taxonomy: str, names: Iterable[str]) -> list[int]:
        """Map term names to ids, creating missing terms.

        WordPress returns term names HTML-escaped ("R&amp;D"), so names are
        unescaped before the case-insensitive comparison.
        """
        ids = []
        for name in sorted(names):
            found = self._request("GET", taxonomy, params={"search": name, "per_page": 100})
            match = next(
                (term for term in found if html.unescape(str(term.get("name", ""))).lower() == name.lower()),
                None,
            )
            ids.append(int(match["id"]) if match is not None else self._create_term(taxonomy, name))
        return ids

    def _create_term(self, taxonomy: str, name: str) -> int:
        resp = self._send("POST", taxonomy, json={"name": name})
        if resp.status_code == 400:
            error = _json_or_none(resp)
            # Raced or unmatched by search; WordPress names the existing term.
            if isinstance(error, dict) and error.get("code") == "term_exists":
                term_id = (error.get("data") or {}).get("term_id")
                if term_id is not None:
                    log_event(
                        self.logger,
                        "Reused existing term",
                        event="term_exists",
                        taxonomy=taxonomy,
                        term=name,
                        term_id=term_id,
                    )
                    return int(term_id)
        created = self._decode("POST", resp)
        log_event(self.logger, "Created term", event="term_created", taxonomy=taxonomy, term=name)
        return int(created["id"])

    def _request(self, method: str, path: str, idempotent: bool = True, **kwargs: Any) -> Any:
        return self._decode(method, self._send(method, path, idempotent=idempotent, **kwargs))

    def _send(self, method: str, path: str, idempotent: bool = True, **kwargs: Any) -> httpx.Response:
        url = f"{self.api_url}/{path}"
        try:
            resp = self.client.request(method, url, auth=self.auth, **kwargs)
        except httpx.HTTPError as exc:
            # Only a failed connect guarantees the server never saw the request.
            retryable = idempotent or isinstance(exc, (httpx.ConnectError, httpx.ConnectTimeout))
            raise TransportError(
                f"{method} {url} failed: {type(exc).__name__}: {exc}",
                retryable=retryable,
            ) from exc

        if resp.status_code in AUTH_STATUS_CODES:
            raise AuthError(
                f"WordPress rejected the credentials for {method} {url} (HTTP {resp.status_code})",
                status_code=resp.status_code,
            )
        return resp

    def _decode(self, method: str, resp: httpx.Response) -> Any:
        if not resp.is_success:
            raise PublishError(
                f"WordPress {method} {resp.request.url} failed with HTTP {resp.status_code}: {resp.text[:200]}",
                status_code=resp.status_code,
            )
        try:
            return resp.json()
        except ValueError as exc:
            raise PublishError(f"WordPress {method} {resp.request.url} returned invalid JSON") from exc


def _json_or_none(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return None
