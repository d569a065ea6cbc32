"""HTTP fetch primitive shared by every comic source.

``fetch_page`` is the only way sources talk to the network for documents:
it rotates the client identity per attempt, retries transient failures with a
fixed one-second delay, and treats ``404`` as a definitive miss.  Images go
through ``fetch_image``, which never retries and never caches.
"""

from __future__ import annotations

import random
import time
from typing import Iterable, Optional

import httpx

from panels.config import Settings, settings
from panels.errors import NotFoundError, ScrapeFailedError
from panels.scraper.models import Page

USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
]

_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
_ACCEPT_LANGUAGE = "en-US,en;q=0.5"

RETRY_DELAY = 1.0


def random_user_agent() -> str:
    """Return one of the browser identities, chosen uniformly at random."""
    return random.choice(USER_AGENTS)


def build_client(config: Settings = settings) -> httpx.Client:
    """Return the process-wide client: redirects followed, capped at 5 hops."""
    return httpx.Client(
        timeout=config.request_timeout,
        follow_redirects=True,
        max_redirects=config.max_redirects,
    )


def _request_headers() -> dict[str, str]:
    return {
        "User-Agent": random_user_agent(),
        "Accept": _ACCEPT,
        "Accept-Language": _ACCEPT_LANGUAGE,
    }


def fetch_page(
    client: httpx.Client,
    url: str,
    retries: int = 1,
    timeout_ms: int = 12_000,
    suppress_errors: bool = False,
    silent_statuses: Iterable[int] = (),
) -> Optional[Page]:
    """GET *url* and return its body and final URL, or ``None`` on a miss.

    Args:
        client: Shared HTTP client.
        url: Document to fetch.
        retries: Additional attempts after the first one.
        timeout_ms: Per-attempt timeout.
        suppress_errors: Silence transport-error warnings (speculative probes).
        silent_statuses: Status codes that should not be reported.

    Returns:
        A :class:`Page`, or ``None`` for a 404 or once attempts are exhausted.

    Raises:
        ScrapeFailedError: If a success response's body cannot be read.
    """
    silent = set(silent_statuses)
    timeout = timeout_ms / 1000

    for attempt in range(retries + 1):
        request = client.build_request(
            "GET", url, headers=_request_headers(), timeout=timeout
        )
        try:
            response = client.send(request, stream=True)
        except httpx.HTTPError as exc:
            if not suppress_errors:
                if isinstance(exc, httpx.TimeoutException):
                    print(f"[fetch] Timed out fetching {url} after {timeout_ms}ms")
                else:
                    print(f"[fetch] Error fetching {url} (attempt {attempt + 1}): {exc}")
            if attempt < retries:
                time.sleep(RETRY_DELAY)
                continue
            return None

        try:
            status = response.status_code
            if not response.is_success:
                if not suppress_errors and status not in silent:
                    print(f"[fetch] Failed to fetch {url}: {status}")
                if status == 404:
                    return None
                if attempt < retries:
                    time.sleep(RETRY_DELAY)
                    continue
                return None

            try:
                response.read()
                body = response.text
            except httpx.HTTPError as exc:
                raise ScrapeFailedError(
                    f"failed to read response body from {url}: {exc}"
                ) from exc
            return Page(body=body, final_url=str(response.url))
        finally:
            response.close()

    return None


def fetch_image(
    client: httpx.Client,
    url: str,
    referer: Optional[str] = None,
    default_content_type: str = "image/jpeg",
) -> tuple[bytes, str]:
    """Fetch an image for the proxy endpoint.

    Always a fresh request.  A referer is forwarded when the origin applies
    hotlink protection.

    Raises:
        NotFoundError: On any non-success status.
        ScrapeFailedError: If the request itself fails.
    """
    headers = {"User-Agent": random_user_agent()}
    if referer:
        headers["Referer"] = referer

    try:
        response = client.get(url, headers=headers)
    except httpx.HTTPError as exc:
        raise ScrapeFailedError(f"failed to fetch image: {exc}") from exc

    if not response.is_success:
        raise NotFoundError("image not found")

    content_type = response.headers.get("content-type") or default_content_type
    return response.content, content_type
