"""
Cursor-linked pagination over GitHub list endpoints.

GitHub returns the next page as a ``Link: <url>; rel="next"`` header instead
of accepting an offset, so pages are fetched strictly one after another.
Traversal ends when no next link remains or when the caller's stop predicate
says the page just fetched already reaches past the cutoff. The predicate only
saves requests; callers still filter every item themselves.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

import httpx

from ..core.errors import AuthError, TransportError
from ..logging_utils import log_event


Page = list[dict[str, Any]]
StopPredicate = Callable[[Page], bool]

AUTH_STATUS_CODES = (401, 403)


def fetch_json(client: httpx.Client, url: str, params: dict[str, Any] | None = None) -> httpx.Response:
    """Perform one GET and classify failures.

    Raises:
        AuthError: On HTTP 401/403
        TransportError: On network failure or any other non-2xx status
    """
    try:
        resp = client.get(url, params=params)
    except httpx.HTTPError as exc:
        raise TransportError(f"GET {url} failed: {type(exc).__name__}: {exc}") from exc

    if resp.status_code in AUTH_STATUS_CODES:
        raise AuthError(
            f"GET {resp.request.url} was rejected with HTTP {resp.status_code}",
            status_code=resp.status_code,
        )
    if not resp.is_success:
        raise TransportError(
            f"GET {resp.request.url} failed with HTTP {resp.status_code}: {resp.text[:200]}",
            status_code=resp.status_code,
        )
    return resp


def next_page_url(resp: httpx.Response) -> str | None:
    """Return the ``rel="next"`` target of the Link header, if any."""
    link = resp.links.get("next")
    if not link:
        return None
    return link.get("url") or None


def paginate(
    client: httpx.Client,
    url: str,
    params: dict[str, Any] | None = None,
    stop_when: StopPredicate | None = None,
    logger: logging.Logger | None = None,
) -> Page:
    """Fetch every page of a list endpoint and concatenate the items.

    Args:
        client: HTTP client carrying base URL, auth headers and timeout
        url: First page URL (absolute or relative to the client base URL)
        params: Query parameters for the first request; later requests use the
            server-supplied next URL verbatim
        stop_when: Called with each page's items; returning True ends the
            traversal after that page
        logger: Optional logger for per-page events

    Returns:
        All items in server order, page after page
    """
    items: Page = []
    next_url: str | None = url
    next_params = params
    pages = 0

    while next_url:
        resp = fetch_json(client, next_url, params=next_params)
        try:
            page = resp.json()
        except ValueError as exc:
            raise TransportError(f"GET {resp.request.url} returned invalid JSON") from exc
        if not isinstance(page, list):
            raise TransportError(f"GET {resp.request.url} returned {type(page).__name__}, expected a list")
        pages += 1
        items.extend(page)
        log_event(logger, "Fetched page", event="page_fetched", url=str(resp.request.url), count=len(page))

        if not page or (stop_when is not None and stop_when(page)):
            break
        next_url = next_page_url(resp)
        next_params = None

    log_event(logger, "Pagination complete", event="pagination_complete", url=url, pages=pages, total=len(items))
    return items
