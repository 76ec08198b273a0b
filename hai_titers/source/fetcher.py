from __future__ import annotations

import logging

import requests

from ..config.loader import RequestConfig
from ..services.progress import DownloadProgress

"""Fetcher: a single blocking GET of the publication page.

No retry and no fallback: a failed fetch ends the run. The timeout is
whatever the config says (default: none).
"""

__all__ = [
    "FetchError",
    "fetch_html",
]

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


class FetchError(Exception):
    """Raised when the source document cannot be retrieved (network/DNS/HTTP)."""


def fetch_html(url: str, request: RequestConfig | None = None) -> bytes:
    """Download the page at ``url`` and return the raw body bytes.

    DOI resolver links redirect to the publisher; redirects are followed.
    The body is returned undecoded so the HTML parser can honour the page's
    own charset declaration.

    Raises:
        FetchError: on any requests failure or a non-2xx status.
    """
    request = request or RequestConfig()
    headers = {"User-Agent": request.user_agent, "Accept": "text/html,application/xhtml+xml"}
    logger.debug(f"GET {url} timeout={request.timeout_seconds}")
    try:
        with requests.get(
            url,
            headers=headers,
            timeout=request.timeout_seconds,
            stream=True,
            allow_redirects=True,
        ) as response:
            response.raise_for_status()
            length = response.headers.get("Content-Length")
            total = int(length) if length and length.isdigit() else None
            body = bytearray()
            with DownloadProgress(total) as progress:
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    if not chunk:
                        continue
                    body.extend(chunk)
                    progress.update(len(chunk))
            final_url = response.url
    except requests.RequestException as e:
        raise FetchError(f"failed to fetch {url}: {e}") from e

    if final_url != url:
        logger.debug(f"resolved {url} -> {final_url}")
    return bytes(body)
