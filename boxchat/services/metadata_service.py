"""
Link metadata: fetch a page and read its title and description.

Responsibility: Best-effort enrichment for saved links. Any failure (network,
non-2xx, unparsable HTML) yields empty strings so callers can carry on.
"""

import logging

import httpx
from bs4 import BeautifulSoup

from boxchat.core.config import METADATA_HTTP_TIMEOUT, METADATA_USER_AGENT

logger = logging.getLogger(__name__)


def _meta_content(soup: BeautifulSoup, **attrs: str) -> str:
    tag = soup.find("meta", attrs=attrs)
    if tag is None:
        return ""
    return (tag.get("content") or "").strip()


def extract_metadata(html: str) -> tuple[str, str]:
    """Return (title, description) from an HTML document. <title> wins over og:title."""
    soup = BeautifulSoup(html, "html.parser")
    title = soup.title.get_text(strip=True) if soup.title else ""
    title = title or _meta_content(soup, property="og:title")
    description = _meta_content(soup, name="description") or _meta_content(soup, property="og:description")
    return title, description


async def fetch_metadata(url: str, client: httpx.AsyncClient | None = None) -> tuple[str, str]:
    """Fetch url and return (title, description); ("", "") when the page cannot be read."""
    logger.info("[metadata] IN  url=%r", url)
    headers = {"User-Agent": METADATA_USER_AGENT}
    try:
        if client is not None:
            response = await client.get(url, headers=headers)
        else:
            async with httpx.AsyncClient(timeout=METADATA_HTTP_TIMEOUT, follow_redirects=True) as http:
                response = await http.get(url, headers=headers)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.warning("[metadata] fetch failed url=%r: %s", url, e)
        return "", ""
    if not response.is_success:
        logger.info("[metadata] url=%r returned %s", url, response.status_code)
        return "", ""
    try:
        title, description = extract_metadata(response.text)
    except Exception as e:
        logger.warning("[metadata] parse failed url=%r: %s", url, e)
        return "", ""
    logger.info("[metadata] OUT title_len=%d description_len=%d", len(title), len(description))
    return title, description
