"""RSS/Atom parsing shared by the feed-based providers."""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

import feedparser

from newsdeck.core.providers.exceptions import ParseError

logger = logging.getLogger(__name__)


@dataclass
class FeedEntry:
    """One <item>/<entry> reduced to the fields providers use."""

    id: str
    title: str
    link: str | None = None
    author: str | None = None
    published_at: datetime | None = None
    content: str | None = None
    summary: str | None = None
    tags: list[str] = field(default_factory=list)


def _to_dt(entry: Any) -> datetime | None:
    # feedparser normalizes dates to UTC time_struct
    ts = entry.get("published_parsed") or entry.get("updated_parsed")
    if not ts:
        return None
    try:
        return datetime(*ts[:6], tzinfo=UTC)
    except (TypeError, ValueError):
        return None


def parse_feed(text: str, source: str = "") -> list[FeedEntry]:
    """
    Parse an RSS or Atom document.

    Args:
        text: Raw XML.
        source: Label for log and error messages.

    Raises:
        ParseError: The document is malformed and yielded no entries.
    """
    feed = feedparser.parse(text)
    if getattr(feed, "bozo", 0):
        error = getattr(feed, "bozo_exception", None)
        if not feed.entries:
            raise ParseError(f"Malformed feed {source}: {error}")
        logger.warning(f"Feed {source} parsed with errors: {error}")

    entries: list[FeedEntry] = []
    for raw in feed.entries:
        title = raw.get("title")
        if not title:
            continue

        content = None
        if raw.get("content"):
            content = raw["content"][0].get("value")

        author = raw.get("author")
        if not author and raw.get("authors"):
            author = raw["authors"][0].get("name")

        entries.append(
            FeedEntry(
                id=str(raw.get("id") or raw.get("guid") or raw.get("link") or title),
                title=str(title),
                link=raw.get("link"),
                author=author,
                published_at=_to_dt(raw),
                content=content,
                summary=raw.get("summary") or raw.get("description"),
                tags=[t.get("term") for t in raw.get("tags", []) if t.get("term")],
            )
        )
    return entries
