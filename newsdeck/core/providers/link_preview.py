"""
Link preview extraction.

Fetches a page and reads its Open Graph / meta tags with BeautifulSoup.
A short content snippet is pulled out with trafilatura, falling back to
the first substantial <p>.
"""

import logging
from urllib.parse import urljoin

import trafilatura
from bs4 import BeautifulSoup

from newsdeck.core.models import LinkPreview
from newsdeck.core.primitives.fetcher import Fetcher, FetchError
from newsdeck.core.providers.text import clean_text, truncate

logger = logging.getLogger(__name__)

PREVIEW_TIMEOUT = 5.0
SNIPPET_MAX_CHARS = 300
MIN_SNIPPET_CHARS = 20
WORDS_PER_MINUTE = 200
# Pages shorter than this get no reading-time estimate
MIN_WORDS_FOR_READING_TIME = 100


async def fetch_link_preview(fetcher: Fetcher, url: str) -> LinkPreview | None:
    """
    Fetch a URL and build a preview from its metadata.

    Args:
        fetcher: HTTP fetcher to use.
        url: Page to preview.

    Returns:
        The preview, or None when the page can't be fetched or has
        neither a title nor a description.
    """
    try:
        result = await fetcher.fetch(url, timeout=PREVIEW_TIMEOUT)
    except FetchError as e:
        logger.debug(f"Link preview fetch failed for {url}: {e}")
        return None

    if not result.ok or not result.text:
        logger.debug(f"No preview for {url}: HTTP {result.status_code}")
        return None

    return parse_open_graph(result.text, base_url=result.url or url)


def parse_open_graph(html: str, base_url: str | None = None) -> LinkPreview | None:
    """Build a LinkPreview from an HTML document; None without title/description."""
    soup = BeautifulSoup(html, "html.parser")

    title = _meta(soup, "og:title")
    if title is None and soup.title and soup.title.string:
        title = clean_text(soup.title.string) or None

    preview = LinkPreview(
        title=title,
        description=_meta(soup, "og:description") or _meta(soup, "description"),
        image_url=_meta(soup, "og:image"),
        site_name=_meta(soup, "og:site_name"),
        content_type=_meta(soup, "og:type"),
        favicon_url=_favicon(soup, base_url),
    )

    if preview.title is None and preview.description is None:
        return None

    text = trafilatura.extract(html, include_comments=False, include_tables=False) or ""
    word_count = len((text or soup.get_text(" ")).split())
    if word_count > MIN_WORDS_FOR_READING_TIME:
        preview.reading_time = max(word_count // WORDS_PER_MINUTE, 1)

    preview.content_snippet = _snippet(text, soup)
    return preview


def _meta(soup: BeautifulSoup, key: str) -> str | None:
    """Content of <meta property=key> or <meta name=key>, if non-empty."""
    tag = soup.find("meta", attrs={"property": key}) or soup.find("meta", attrs={"name": key})
    if tag is None:
        return None
    content = (tag.get("content") or "").strip()
    return content or None


def _favicon(soup: BeautifulSoup, base_url: str | None) -> str | None:
    for link in soup.find_all("link", href=True):
        rel = link.get("rel") or []
        if isinstance(rel, str):
            rel = rel.split()
        if "icon" in [r.lower() for r in rel]:
            href = link["href"]
            return urljoin(base_url, href) if base_url else href
    return None


def _snippet(extracted: str, soup: BeautifulSoup) -> str | None:
    for paragraph in extracted.split("\n"):
        paragraph = paragraph.strip()
        if len(paragraph) > MIN_SNIPPET_CHARS:
            return truncate(paragraph, SNIPPET_MAX_CHARS)

    first_p = soup.find("p")
    if first_p is not None:
        text = clean_text(first_p.get_text(" "))
        if len(text) > MIN_SNIPPET_CHARS:
            return truncate(text, SNIPPET_MAX_CHARS)
    return None
