"""Fetch raw series-page HTML with a browser identity."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Tuple
from urllib.parse import urlparse, urlunparse

import aiohttp

import config

LOGGER = logging.getLogger(__name__)


class FetchError(Exception):
    """The source site could not be reached or answered with a non-2xx status."""

    def __init__(self, status: Optional[int], message: str):
        super().__init__(message)
        self.status = status
        self.message = message


@dataclass(frozen=True)
class FetchedPage:
    requested_url: str
    final_url: str
    status: int
    html: str

    @property
    def hostname(self) -> str:
        return (urlparse(self.final_url).hostname or "").lower()


def build_timeout() -> aiohttp.ClientTimeout:
    return aiohttp.ClientTimeout(
        total=config.CRAWLER_HTTP_TOTAL_TIMEOUT_SECONDS,
        connect=config.CRAWLER_HTTP_CONNECT_TIMEOUT_SECONDS,
        sock_read=config.CRAWLER_HTTP_SOCK_READ_TIMEOUT_SECONDS,
    )


def mirror_url_for(url: str) -> Optional[str]:
    """Return ``url`` rewritten onto its mirror host, if the host has one."""
    parsed = urlparse(url)
    hostname = (parsed.hostname or "").lower()
    mirror_host = config.MIRROR_FALLBACK_HOSTS.get(hostname)
    if not mirror_host:
        return None
    netloc = f"{mirror_host}:{parsed.port}" if parsed.port else mirror_host
    return urlunparse(parsed._replace(netloc=netloc))


async def _get(session, url: str) -> Tuple[int, str, str]:
    async with session.get(url, headers=config.CRAWLER_HEADERS, allow_redirects=True) as response:
        html = await response.text(errors="replace")
        return response.status, html, str(response.url)


async def _fetch_with_session(session, url: str) -> FetchedPage:
    status, html, final_url = await _get(session, url)

    if status == 404:
        mirror_url = mirror_url_for(url)
        if mirror_url:
            LOGGER.info("404 from %s, retrying on mirror %s", url, mirror_url)
            status, html, final_url = await _get(session, mirror_url)

    if not 200 <= status < 300:
        raise FetchError(status, f"Failed to fetch site: {status}")
    return FetchedPage(requested_url=url, final_url=final_url, status=status, html=html)


async def fetch_html(url: str, session=None) -> FetchedPage:
    """Fetch ``url`` and return the page; raises :class:`FetchError` on failure.

    A 404 from a host listed in ``config.MIRROR_FALLBACK_HOSTS`` is retried once
    on the mirror host with the same path. No other retries happen.
    """
    parsed = urlparse(url or "")
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        raise FetchError(None, f"Invalid URL: {url}")

    try:
        if session is not None:
            return await _fetch_with_session(session, url)
        async with aiohttp.ClientSession(timeout=build_timeout()) as own_session:
            return await _fetch_with_session(own_session, url)
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        raise FetchError(None, f"Failed to fetch site: {str(e) or type(e).__name__}") from e
