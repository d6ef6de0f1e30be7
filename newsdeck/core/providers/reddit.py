"""
Reddit provider.

Fetches posts from subreddits via their public Atom feeds and
comment threads via the JSON API.
"""

import asyncio
import html
import logging
import re
from enum import StrEnum
from typing import Any

from newsdeck.core.models import Comment, FeedItem, FeedItemMetadata
from newsdeck.core.providers.base import BaseProvider, timestamp_or_now
from newsdeck.core.providers.exceptions import ParseError, ProviderError
from newsdeck.core.providers.feeds import FeedEntry, parse_feed
from newsdeck.core.providers.text import html_to_text
from newsdeck.core.utils.time import utcnow

logger = logging.getLogger(__name__)

REDDIT_BASE_URL = "https://www.reddit.com"
DEFAULT_SUBREDDITS = ["technology", "programming", "rust"]


class RedditSort(StrEnum):
    """Listing sort order."""

    HOT = "hot"
    NEW = "new"
    TOP = "top"
    RISING = "rising"

    @property
    def path(self) -> str:
        return "" if self == RedditSort.HOT else f"/{self.value}"

    @classmethod
    def from_str(cls, value: str | None) -> "RedditSort":
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.HOT


class RedditProvider(BaseProvider):
    """
    Fetches posts from a set of subreddits.

    Subreddits are fetched concurrently; one failing subreddit only
    removes its own posts from the result.
    """

    # Minimum posts requested from each subreddit
    MIN_PER_SUBREDDIT = 10
    COLLAPSE_DEPTH = 2

    def __init__(
        self,
        subreddits: list[str] | None = None,
        sort: str | None = None,
        enabled: bool = True,
        timeout: float = 10.0,
        connect_timeout: float = 5.0,
        base_url: str = REDDIT_BASE_URL,
    ):
        super().__init__(
            timeout=timeout,
            connect_timeout=connect_timeout,
            user_agent="newsdeck/0.1",
            enabled=enabled,
        )
        self.subreddits = [s.strip().removeprefix("r/") for s in subreddits or [] if s.strip()]
        if not self.subreddits:
            self.subreddits = list(DEFAULT_SUBREDDITS)
        self.sort = RedditSort.from_str(sort)
        self.base_url = base_url.rstrip("/")

    @property
    def id(self) -> str:
        return "reddit"

    @property
    def name(self) -> str:
        return "Reddit"

    @property
    def description(self) -> str:
        return "Posts from Reddit subreddits"

    @property
    def icon(self) -> str:
        return "[R]"

    def categories(self) -> list[str]:
        return list(self.subreddits)

    def build_feed_url(self, subreddit: str) -> str:
        return f"{self.base_url}/r/{subreddit}{self.sort.path}.rss"

    async def fetch_items(self, limit: int) -> list[FeedItem]:
        """Fetch posts from all subreddits, newest first, at most `limit`."""
        if limit <= 0:
            return []

        per_subreddit = max(limit // len(self.subreddits), self.MIN_PER_SUBREDDIT)
        results = await asyncio.gather(
            *(self._fetch_subreddit(sub, per_subreddit) for sub in self.subreddits),
            return_exceptions=True,
        )

        items: list[FeedItem] = []
        errors: list[ProviderError] = []
        for subreddit, result in zip(self.subreddits, results):
            if isinstance(result, ProviderError):
                logger.warning(f"Failed to fetch r/{subreddit}: {result}")
                errors.append(result)
                continue
            if isinstance(result, BaseException):
                raise result
            items.extend(result)

        if errors and len(errors) == len(self.subreddits):
            raise errors[0]

        items.sort(key=lambda item: item.published_at, reverse=True)
        return items[:limit]

    async def fetch_comments(
        self,
        subreddit: str,
        post_id: str,
        max_depth: int = 3,
    ) -> list[Comment]:
        """
        Fetch a post's comment tree via the JSON API.

        Args:
            subreddit: Subreddit name without the r/ prefix.
            post_id: Base-36 post ID (without the t3_ prefix).
            max_depth: Deepest comment depth kept (top level is 0).
        """
        url = f"{self.base_url}/r/{subreddit}/comments/{post_id}.json"
        data = await self._get_json(url)

        # Reddit returns [post_listing, comments_listing]
        try:
            children = data[1]["data"]["children"]
        except (IndexError, KeyError, TypeError) as e:
            raise ParseError(f"Unexpected comments payload from {url}") from e

        comments = []
        for child in children or []:
            comment = self._parse_comment(child, 0, max_depth)
            if comment is not None:
                comments.append(comment)
        return comments

    async def _fetch_subreddit(self, subreddit: str, limit: int) -> list[FeedItem]:
        url = self.build_feed_url(subreddit)
        xml = await self._get_text(url)
        entries = parse_feed(xml, source=f"r/{subreddit}")
        items = [self._convert_entry(entry, subreddit) for entry in entries]
        return items[:limit]

    def _convert_entry(self, entry: FeedEntry, subreddit: str) -> FeedItem:
        """Convert a parsed Atom entry to a FeedItem."""
        score, comments = extract_counts(entry.content or "")

        metadata = FeedItemMetadata(
            score=score,
            comments=comments,
            tags=[f"r/{subreddit}"],
            subreddit=subreddit,
            reddit_id=extract_post_id(entry.id, entry.link),
        )

        item = FeedItem(
            id=entry.id,
            provider_id=self.id,
            title=entry.title,
            source=f"r/{subreddit}",
            published_at=entry.published_at or utcnow(),
            metadata=metadata,
        )

        if entry.author:
            item.with_author(entry.author.removeprefix("/u/").removeprefix("u/"))
        if entry.link:
            item.with_url(entry.link)
        if entry.content:
            lines = html_to_text(entry.content).splitlines()[:3]
            summary = " ".join(lines).strip()
            if summary:
                item.with_summary(summary)

        return item

    def _parse_comment(self, node: Any, depth: int, max_depth: int) -> Comment | None:
        if depth > max_depth or not isinstance(node, dict):
            return None
        # t1 = comment; "more" stubs and other kinds are skipped
        if node.get("kind") != "t1":
            return None

        data = node.get("data") or {}
        comment_id = data.get("id")
        author = data.get("author")
        body = data.get("body")
        if comment_id is None or author is None or body is None:
            return None

        comment = Comment(
            id=str(comment_id),
            author=str(author),
            text=str(body),
            # body_html arrives entity-escaped
            text_plain=html_to_text(html.unescape(data.get("body_html") or "")) or str(body),
            score=data.get("score"),
            created_at=timestamp_or_now(data.get("created_utc")),
            depth=depth,
            collapsed=depth > self.COLLAPSE_DEPTH,
        )

        if depth < max_depth:
            replies = data.get("replies")
            # Reddit sends "" when there are no replies
            if isinstance(replies, dict):
                for child in (replies.get("data") or {}).get("children") or []:
                    reply = self._parse_comment(child, depth + 1, max_depth)
                    if reply is not None:
                        comment.replies.append(reply)

        return comment


_NUMBER_BEFORE = r"(\d[\d,]*)\s+{keyword}"


def extract_counts(content: str) -> tuple[int | None, int | None]:
    """Best-effort score and comment count from a post's HTML content."""
    text = html_to_text(content) if "<" in content else content
    return _number_before(text, "point"), _number_before(text, "comment")


def _number_before(text: str, keyword: str) -> int | None:
    match = re.search(_NUMBER_BEFORE.format(keyword=keyword), text, re.IGNORECASE)
    if not match:
        return None
    return int(match.group(1).replace(",", ""))


def extract_post_id(entry_id: str, link: str | None = None) -> str:
    """
    Extract the base-36 post ID.

    Atom entry IDs look like "t3_abc123"; permalinks look like
    https://www.reddit.com/r/rust/comments/abc123/title/.
    """
    if entry_id.startswith("t3_"):
        return entry_id[3:]
    for candidate in (entry_id, link or ""):
        if "/comments/" in candidate:
            return candidate.split("/comments/", 1)[1].split("/", 1)[0]
    return entry_id
