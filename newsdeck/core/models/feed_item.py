"""
Unified feed item model.

Every provider normalizes its source-specific payload into FeedItem.
The model carries no behavior beyond display helpers and JSON-safe
conversion (to_dict / from_dict), which the persistent cache relies on.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any

from newsdeck.core.utils.time import ensure_utc, format_age, from_iso, to_iso, utcnow


class SentimentLabel(StrEnum):
    """Sentiment label categories."""

    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"

    @property
    def color(self) -> str:
        """Display color for the label."""
        return {
            SentimentLabel.POSITIVE: "green",
            SentimentLabel.NEGATIVE: "red",
            SentimentLabel.NEUTRAL: "yellow",
        }[self]


@dataclass
class Sentiment:
    """Sentiment analysis result."""

    score: float
    label: SentimentLabel
    confidence: float

    def __post_init__(self) -> None:
        if not -1.0 <= self.score <= 1.0:
            raise ValueError(f"Sentiment score out of range [-1, 1]: {self.score}")
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Sentiment confidence out of range [0, 1]: {self.confidence}")
        self.label = SentimentLabel(self.label)

    def to_dict(self) -> dict[str, Any]:
        return {"score": self.score, "label": self.label.value, "confidence": self.confidence}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Sentiment":
        return cls(
            score=float(data["score"]),
            label=SentimentLabel(data["label"]),
            confidence=float(data["confidence"]),
        )


@dataclass
class LinkPreview:
    """Rich link preview data (Open Graph / meta tags)."""

    title: str | None = None
    description: str | None = None
    image_url: str | None = None
    site_name: str | None = None
    content_snippet: str | None = None
    favicon_url: str | None = None
    content_type: str | None = None
    reading_time: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "image_url": self.image_url,
            "site_name": self.site_name,
            "content_snippet": self.content_snippet,
            "favicon_url": self.favicon_url,
            "content_type": self.content_type,
            "reading_time": self.reading_time,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LinkPreview":
        return cls(
            title=data.get("title"),
            description=data.get("description"),
            image_url=data.get("image_url"),
            site_name=data.get("site_name"),
            content_snippet=data.get("content_snippet"),
            favicon_url=data.get("favicon_url"),
            content_type=data.get("content_type"),
            reading_time=data.get("reading_time"),
        )


@dataclass
class Comment:
    """
    A node in a discussion thread.

    Each node owns its replies; the thread is a tree. A child's depth is
    always its parent's depth + 1. `collapsed` is a display hint only.
    """

    id: str
    author: str
    text: str
    created_at: datetime = field(default_factory=utcnow)
    text_plain: str | None = None
    score: int | None = None
    depth: int = 0
    collapsed: bool = False
    replies: list["Comment"] = field(default_factory=list)

    def total_count(self) -> int:
        """Count this comment plus all nested replies."""
        return 1 + sum(reply.total_count() for reply in self.replies)

    def time_ago(self, now: datetime | None = None) -> str:
        """Short age string ("5m", "3h", "2d")."""
        return format_age(self.created_at, now=now, suffix="")

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "author": self.author,
            "text": self.text,
            "text_plain": self.text_plain,
            "score": self.score,
            "created_at": to_iso(self.created_at),
            "depth": self.depth,
            "collapsed": self.collapsed,
            "replies": [reply.to_dict() for reply in self.replies],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Comment":
        return cls(
            id=data["id"],
            author=data["author"],
            text=data["text"],
            text_plain=data.get("text_plain"),
            score=data.get("score"),
            created_at=from_iso(data["created_at"]),
            depth=data.get("depth", 0),
            collapsed=data.get("collapsed", False),
            replies=[cls.from_dict(reply) for reply in data.get("replies", [])],
        )


@dataclass
class FeedItemMetadata:
    """Extensible metadata attached to a feed item."""

    score: int | None = None
    comments: int | None = None
    sentiment: Sentiment | None = None
    tags: list[str] = field(default_factory=list)
    image_url: str | None = None
    # Provider-specific JSON payload
    extra: dict[str, Any] | None = None
    # Full comment thread, loaded on demand
    comments_data: list[Comment] | None = None
    link_preview: LinkPreview | None = None
    # Reddit upvote ratio, 0.0-1.0
    upvote_ratio: float | None = None
    subreddit: str | None = None
    # Back-references used to fetch discussion threads later
    hn_id: int | None = None
    reddit_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "comments": self.comments,
            "sentiment": self.sentiment.to_dict() if self.sentiment else None,
            "tags": list(self.tags),
            "image_url": self.image_url,
            "extra": self.extra,
            "comments_data": (
                [c.to_dict() for c in self.comments_data]
                if self.comments_data is not None
                else None
            ),
            "link_preview": self.link_preview.to_dict() if self.link_preview else None,
            "upvote_ratio": self.upvote_ratio,
            "subreddit": self.subreddit,
            "hn_id": self.hn_id,
            "reddit_id": self.reddit_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FeedItemMetadata":
        sentiment = data.get("sentiment")
        comments_data = data.get("comments_data")
        link_preview = data.get("link_preview")
        return cls(
            score=data.get("score"),
            comments=data.get("comments"),
            sentiment=Sentiment.from_dict(sentiment) if sentiment else None,
            tags=list(data.get("tags") or []),
            image_url=data.get("image_url"),
            extra=data.get("extra"),
            comments_data=(
                [Comment.from_dict(c) for c in comments_data]
                if comments_data is not None
                else None
            ),
            link_preview=LinkPreview.from_dict(link_preview) if link_preview else None,
            upvote_ratio=data.get("upvote_ratio"),
            subreddit=data.get("subreddit"),
            hn_id=data.get("hn_id"),
            reddit_id=data.get("reddit_id"),
        )


@dataclass
class FeedItem:
    """
    One normalized content entry.

    (provider_id, id) is the global identity of an item. published_at is
    the only field cross-provider ordering uses, so it is always a valid
    aware UTC datetime.
    """

    id: str
    provider_id: str
    title: str
    source: str
    published_at: datetime
    summary: str | None = None
    content: str | None = None
    url: str | None = None
    author: str | None = None
    metadata: FeedItemMetadata = field(default_factory=FeedItemMetadata)

    def __post_init__(self) -> None:
        if not self.title:
            raise ValueError("FeedItem title is required")
        if not isinstance(self.published_at, datetime):
            raise TypeError(f"published_at must be a datetime, got {type(self.published_at)!r}")
        self.published_at = ensure_utc(self.published_at)

    def __repr__(self) -> str:
        """Return string representation of item."""
        title_preview = self.title[:50] + "..." if len(self.title) > 50 else self.title
        return f"<FeedItem({self.provider_id}:{self.id} title='{title_preview}')>"

    @property
    def global_id(self) -> str:
        """Identity across providers."""
        return f"{self.provider_id}:{self.id}"

    def with_summary(self, summary: str) -> "FeedItem":
        self.summary = summary
        return self

    def with_url(self, url: str) -> "FeedItem":
        self.url = url
        return self

    def with_author(self, author: str) -> "FeedItem":
        self.author = author
        return self

    def with_content(self, content: str) -> "FeedItem":
        self.content = content
        return self

    def with_metadata(self, metadata: FeedItemMetadata) -> "FeedItem":
        self.metadata = metadata
        return self

    def time_ago(self, now: datetime | None = None) -> str:
        """Display-friendly age, e.g. "2h ago"."""
        return format_age(self.published_at, now=now)

    def sentiment_color(self) -> str:
        if self.metadata.sentiment is None:
            return "white"
        return self.metadata.sentiment.label.color

    def score_display(self) -> str | None:
        if self.metadata.score is None:
            return None
        return f"▲{self.metadata.score}"

    def comments_display(self) -> str | None:
        if self.metadata.comments is None:
            return None
        return f"💬{self.metadata.comments}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "provider_id": self.provider_id,
            "title": self.title,
            "summary": self.summary,
            "content": self.content,
            "url": self.url,
            "author": self.author,
            "source": self.source,
            "published_at": to_iso(self.published_at),
            "metadata": self.metadata.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FeedItem":
        return cls(
            id=data["id"],
            provider_id=data["provider_id"],
            title=data["title"],
            source=data["source"],
            published_at=from_iso(data["published_at"]),
            summary=data.get("summary"),
            content=data.get("content"),
            url=data.get("url"),
            author=data.get("author"),
            metadata=FeedItemMetadata.from_dict(data.get("metadata") or {}),
        )
