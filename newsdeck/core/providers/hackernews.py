"""
Hacker News provider.

The Firebase API exposes a list of story IDs per category and item
details by ID separately, so fetching is two-phase:
1. Download the category's ID list (kept in-process for pagination)
2. Fetch item bodies in parallel, in fixed-size batches
"""

import asyncio
import logging
from enum import StrEnum
from typing import Any

from newsdeck.core.models import Comment, FeedItem, FeedItemMetadata
from newsdeck.core.providers.base import BaseProvider, timestamp_or_now
from newsdeck.core.providers.exceptions import ParseError, ProviderError, ProviderOtherError
from newsdeck.core.providers.text import html_to_text

logger = logging.getLogger(__name__)

HN_API_BASE = "https://hacker-news.firebaseio.com/v0"


class HnCategory(StrEnum):
    """Hacker News story listing."""

    TOP = "top"
    NEW = "new"
    BEST = "best"
    ASK = "ask"
    SHOW = "show"
    JOB = "job"

    @property
    def endpoint(self) -> str:
        return f"{self.value}stories"

    @property
    def label(self) -> str:
        return {
            HnCategory.TOP: "Top",
            HnCategory.NEW: "New",
            HnCategory.BEST: "Best",
            HnCategory.ASK: "Ask HN",
            HnCategory.SHOW: "Show HN",
            HnCategory.JOB: "Jobs",
        }[self]

    @classmethod
    def from_str(cls, value: str | None) -> "HnCategory":
        """Parse a category name; unknown names fall back to TOP."""
        normalized = (value or "").strip().lower()
        if normalized == "jobs":
            normalized = "job"
        try:
            return cls(normalized)
        except ValueError:
            return cls.TOP


class HackerNewsProvider(BaseProvider):
    """
    Fetches stories and comment threads from Hacker News.

    Story IDs for the current category are cached in-process so that
    fetch_items_with_offset() pages through the same snapshot that the
    last fetch_items() saw. Changing the category drops the snapshot.
    """

    # Concurrent item requests per batch
    FIRST_PAGE_BATCH_SIZE = 10
    PAGE_BATCH_SIZE = 25
    # Comments deeper than this start out collapsed in the UI
    COLLAPSE_DEPTH = 2

    def __init__(
        self,
        category: str | None = None,
        enabled: bool = True,
        timeout: float = 30.0,
        connect_timeout: float = 10.0,
        base_url: str = HN_API_BASE,
    ):
        super().__init__(timeout=timeout, connect_timeout=connect_timeout, enabled=enabled)
        self.base_url = base_url.rstrip("/")
        self.category = HnCategory.from_str(category)
        self._cached_ids: list[int] = []
        self._cached_category: HnCategory | None = None
        self._ids_lock = asyncio.Lock()
        self._request_slots = asyncio.Semaphore(self.PAGE_BATCH_SIZE)

    @property
    def id(self) -> str:
        return "hackernews"

    @property
    def name(self) -> str:
        return "Hacker News"

    @property
    def description(self) -> str:
        return "Tech news and discussions from Y Combinator"

    @property
    def icon(self) -> str:
        return "[HN]"

    def categories(self) -> list[str]:
        return [c.value for c in HnCategory]

    def set_category(self, category: HnCategory | str) -> None:
        """Switch listing; invalidates the cached ID snapshot."""
        self.category = (
            category if isinstance(category, HnCategory) else HnCategory.from_str(category)
        )
        self._cached_ids = []
        self._cached_category = None

    def supports_offset(self) -> bool:
        return True

    async def fetch_items(self, limit: int) -> list[FeedItem]:
        """
        Fetch the first `limit` live stories of the current category.

        Deleted and dead stories are skipped and do not use up the limit;
        further IDs are pulled from the snapshot until it runs out.
        """
        if limit <= 0:
            return []

        category = self.category
        ids = await self._fetch_story_ids(category)
        async with self._ids_lock:
            self._store_snapshot(category, ids)

        items: list[FeedItem] = []
        position = 0
        while len(items) < limit and position < len(ids):
            wanted = limit - len(items)
            chunk = ids[position:position + max(wanted, self.FIRST_PAGE_BATCH_SIZE)]
            position += len(chunk)
            fetched = await self._fetch_items_by_ids(chunk, self.FIRST_PAGE_BATCH_SIZE, category)
            items.extend(fetched[:wanted])

        logger.info(f"Fetched {len(items)} {category.label} stories from Hacker News")
        return items

    async def fetch_items_with_offset(self, offset: int, limit: int) -> list[FeedItem]:
        """
        Fetch stories at [offset, offset + limit) of the cached ID snapshot.

        Unlike fetch_items(), the window is taken over raw IDs: dead and
        deleted stories inside it are dropped, so a page can come back
        shorter than `limit`.
        """
        category = self.category
        async with self._ids_lock:
            if self._cached_ids and self._cached_category == category:
                ids = list(self._cached_ids)
            else:
                ids = await self._fetch_story_ids(category)
                self._store_snapshot(category, ids)

        page = ids[offset:offset + limit]
        if not page:
            return []
        return await self._fetch_items_by_ids(page, self.PAGE_BATCH_SIZE, category)

    def offset_snapshot(self) -> list[int]:
        """IDs of the current category's snapshot; empty when there is none."""
        if self._cached_category != self.category:
            return []
        return list(self._cached_ids)

    def restore_offset_snapshot(self, snapshot: list[Any]) -> None:
        """Reinstate the ID snapshot that produced a cached first page."""
        self._cached_ids = [int(story_id) for story_id in snapshot]
        self._cached_category = self.category

    def _store_snapshot(self, category: HnCategory, ids: list[int]) -> None:
        # A set_category() during the request already dropped the snapshot
        if category != self.category:
            logger.debug(f"Discarding {category.label} story IDs after category switch")
            return
        self._cached_ids = list(ids)
        self._cached_category = category

    async def fetch_comments(self, item_id: int, max_depth: int = 3) -> list[Comment]:
        """
        Fetch the comment tree of a story.

        Args:
            item_id: HN story ID.
            max_depth: Deepest comment depth kept (top level is 0).
                Nodes at max_depth are returned without replies.

        Returns:
            Top-level comments in thread order.
        """
        story = await self._fetch_item(item_id)
        if story is None:
            raise ProviderOtherError(f"Item {item_id} not found")

        kids = story.get("kids") or []
        return await self._fetch_comment_level(kids, 0, max_depth)

    async def _fetch_story_ids(self, category: HnCategory) -> list[int]:
        """Download the full ID list for a category."""
        url = f"{self.base_url}/{category.endpoint}.json"
        data = await self._get_json(url)
        if not isinstance(data, list):
            raise ParseError(f"Expected a list of story IDs from {url}")
        try:
            return [int(story_id) for story_id in data]
        except (TypeError, ValueError) as e:
            raise ParseError(f"Invalid story ID in {url}: {e}") from e

    async def _fetch_item(self, item_id: int) -> dict[str, Any] | None:
        """Fetch one item; None when the API returns null."""
        async with self._request_slots:
            data = await self._get_json(f"{self.base_url}/item/{item_id}.json")
        if data is not None and not isinstance(data, dict):
            raise ParseError(f"Unexpected payload for item {item_id}")
        return data

    async def _fetch_items_by_ids(
        self,
        ids: list[int],
        batch_size: int,
        category: HnCategory,
    ) -> list[FeedItem]:
        """Fetch items in batches, skipping failures and dead/deleted items."""
        items: list[FeedItem] = []

        for start in range(0, len(ids), batch_size):
            chunk = ids[start:start + batch_size]
            results = await asyncio.gather(
                *(self._fetch_item(item_id) for item_id in chunk),
                return_exceptions=True,
            )
            for item_id, result in zip(chunk, results):
                if isinstance(result, ProviderError):
                    logger.debug(f"Skipping HN item {item_id}: {result}")
                    continue
                if isinstance(result, BaseException):
                    raise result
                if not _is_live(result):
                    continue
                items.append(self._convert_to_feed_item(result, category))

        return items

    async def _fetch_comment_level(
        self,
        kid_ids: list[int],
        depth: int,
        max_depth: int,
    ) -> list[Comment]:
        if depth > max_depth or not kid_ids:
            return []

        results = await asyncio.gather(
            *(self._fetch_comment(kid_id, depth, max_depth) for kid_id in kid_ids),
            return_exceptions=True,
        )
        comments: list[Comment] = []
        for kid_id, result in zip(kid_ids, results):
            if isinstance(result, ProviderError):
                logger.debug(f"Skipping HN comment {kid_id}: {result}")
                continue
            if isinstance(result, BaseException):
                raise result
            if result is not None:
                comments.append(result)
        return comments

    async def _fetch_comment(self, item_id: int, depth: int, max_depth: int) -> Comment | None:
        item = await self._fetch_item(item_id)
        if not _is_live(item):
            return None

        text = item.get("text") or ""
        comment = Comment(
            id=str(item["id"]),
            author=item.get("by") or "[unknown]",
            text=text,
            text_plain=html_to_text(text),
            score=item.get("score"),
            created_at=timestamp_or_now(item.get("time")),
            depth=depth,
            collapsed=depth > self.COLLAPSE_DEPTH,
        )
        if depth < max_depth:
            comment.replies = await self._fetch_comment_level(
                item.get("kids") or [], depth + 1, max_depth
            )
        return comment

    def _convert_to_feed_item(self, item: dict[str, Any], category: HnCategory) -> FeedItem:
        """Convert an HN API item to a FeedItem."""
        if category == HnCategory.ASK:
            source = "Ask HN"
        elif category == HnCategory.SHOW:
            source = "Show HN"
        elif category == HnCategory.JOB:
            source = "HN Jobs"
        else:
            source = "Hacker News"

        metadata = FeedItemMetadata(
            score=item.get("score"),
            comments=item.get("descendants"),
            hn_id=int(item["id"]),
        )

        feed_item = FeedItem(
            id=str(item["id"]),
            provider_id=self.id,
            title=item.get("title") or "(no title)",
            source=source,
            published_at=timestamp_or_now(item.get("time")),
            metadata=metadata,
        )

        if item.get("by"):
            feed_item.with_author(item["by"])
        if item.get("url"):
            feed_item.with_url(item["url"])
        if item.get("text"):
            feed_item.with_summary(html_to_text(item["text"]))

        return feed_item


def _is_live(item: dict[str, Any] | None) -> bool:
    """False for missing, deleted, or dead items."""
    if not item or "id" not in item:
        return False
    return not (item.get("deleted") or item.get("dead"))
