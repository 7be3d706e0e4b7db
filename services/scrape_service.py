"""The two externally invoked operations: ``fetch_metadata`` and ``fetch_latest``.

Both return plain dicts ready for JSON. Failures come back as
``{"error": "..."}`` instead of raising, so callers can relay them as-is.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Tuple

from scrapers import SiteScraper, get_scraper
from services.document import RawDocument
from services.html_fetcher import FetchError, fetch_html
from services.models import UNKNOWN_TITLE
from services.site_profile import SiteProfile, classify_hostname

LOGGER = logging.getLogger(__name__)

NO_URL_ERROR = "No URL provided"


async def _load(url: str, session=None) -> Tuple[SiteProfile, SiteScraper, RawDocument]:
    page = await fetch_html(url, session=session)
    profile = classify_hostname(page.hostname)
    return profile, get_scraper(profile), RawDocument(page.html)


async def fetch_metadata(url: str, session=None) -> Dict[str, Any]:
    """Scrape series metadata plus the latest-chapter fields for ``url``."""
    if not url or not str(url).strip():
        return {"error": NO_URL_ERROR}
    url = str(url).strip()

    try:
        profile, scraper, document = await _load(url, session=session)
    except FetchError as e:
        LOGGER.warning("fetch_metadata failed for %s: %s", url, e.message)
        return {"error": e.message}

    metadata = scraper.extract_metadata(document)
    latest = scraper.extract_latest(document)
    if metadata.title == UNKNOWN_TITLE and not metadata.cover_image_url and latest.is_empty:
        LOGGER.warning("No metadata found on %s (profile=%s)", url, profile.value)

    return {"metadata": {**metadata.to_payload(), **latest.to_payload()}}


async def fetch_latest(url: str, session=None) -> Dict[str, Any]:
    """Scrape only the latest chapter label, upload instant and chapter count."""
    if not url or not str(url).strip():
        return {"error": NO_URL_ERROR}
    url = str(url).strip()

    try:
        profile, scraper, document = await _load(url, session=session)
    except FetchError as e:
        LOGGER.warning("fetch_latest failed for %s: %s", url, e.message)
        return {"error": e.message}

    latest = scraper.extract_latest(document)
    if latest.is_empty:
        LOGGER.warning("No chapter data found on %s (profile=%s)", url, profile.value)
    return latest.to_payload()
