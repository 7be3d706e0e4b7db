"""Client for the cover-image proxy (re-hosts third-party covers).

Mirroring is best effort: whenever the proxy is not configured, unreachable or
answers with something unexpected, the original URL is handed back.
"""

import asyncio
import logging

import aiohttp
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

import config

LOGGER = logging.getLogger(__name__)


def is_proxied(url):
    return bool(config.IMAGE_PROXY_URL) and url.startswith(config.IMAGE_PROXY_URL + "/")


@retry(
    stop=stop_after_attempt(config.IMAGE_PROXY_RETRY_ATTEMPTS),
    wait=wait_exponential(multiplier=1, min=1, max=5),
    retry=retry_if_exception_type((aiohttp.ClientConnectionError, asyncio.TimeoutError)),
    reraise=True,
)
async def _post_upload(session, image_url):
    async with session.post(
        f"{config.IMAGE_PROXY_URL}/upload",
        json={"imageUrl": image_url},
    ) as response:
        if not 200 <= response.status < 300:
            LOGGER.warning("Image proxy answered %s for %s", response.status, image_url)
            return None
        try:
            data = await response.json(content_type=None)
        except ValueError:
            LOGGER.warning("Image proxy returned a malformed body for %s", image_url)
            return None
    if not isinstance(data, dict):
        return None
    new_url = data.get("url")
    return new_url if isinstance(new_url, str) and new_url.strip() else None


async def upload_image_to_proxy(image_url, session=None):
    """Mirror ``image_url`` through the proxy and return the hosted URL.

    Raises:
        ValueError: ``image_url`` is empty.
    """
    if not image_url or not str(image_url).strip():
        raise ValueError("Image URL is required")
    image_url = str(image_url).strip()

    if not config.IMAGE_PROXY_URL:
        LOGGER.warning("IMAGE_PROXY_URL is not set; keeping original cover %s", image_url)
        return image_url

    try:
        if session is not None:
            new_url = await _post_upload(session, image_url)
        else:
            timeout = aiohttp.ClientTimeout(total=config.IMAGE_PROXY_TIMEOUT_SECONDS)
            async with aiohttp.ClientSession(timeout=timeout) as owned:
                new_url = await _post_upload(owned, image_url)
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        LOGGER.warning("Image proxy upload failed for %s: %s", image_url, str(e) or type(e).__name__)
        return image_url

    return new_url or image_url


async def process_cover_url(url, session=None):
    """Normalize a cover URL before it is stored."""
    if not url or not str(url).strip():
        return ""
    url = str(url).strip()
    if is_proxied(url):
        return url
    if url.startswith("http://") or url.startswith("https://"):
        return await upload_image_to_proxy(url, session=session)
    return url
