"""
Cache data structures: entries, keys, and statistics.

A CacheEntry is created by the cache write path and never mutated;
a later write to the same key supersedes it.
"""

import hashlib
import json
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import Any, Generic, TypeVar

from newsdeck.core.utils.time import from_iso, to_iso, utcnow

T = TypeVar("T")


def encode_payload(value: Any) -> Any:
    """Convert model objects (anything with to_dict) into JSON-safe values."""
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, (list, tuple)):
        return [encode_payload(v) for v in value]
    if isinstance(value, dict):
        return {k: encode_payload(v) for k, v in value.items()}
    return value


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """Cached payload with the time it was written and its TTL."""

    data: T
    cached_at: datetime
    ttl_seconds: int

    @classmethod
    def new(cls, data: T, ttl_seconds: int) -> "CacheEntry[T]":
        """Create an entry stamped with the current time."""
        return cls(data=data, cached_at=utcnow(), ttl_seconds=int(ttl_seconds))

    def age_seconds(self, now: datetime | None = None) -> int:
        """Whole seconds elapsed since the entry was written."""
        now = now or utcnow()
        return int((now - self.cached_at).total_seconds())

    def is_valid(self, now: datetime | None = None) -> bool:
        """True while now - cached_at < ttl_seconds (in whole seconds)."""
        return self.age_seconds(now) < self.ttl_seconds

    def remaining_ttl(self, now: datetime | None = None) -> int:
        """Seconds left before expiry; negative once expired."""
        return self.ttl_seconds - self.age_seconds(now)

    def to_json(self) -> bytes:
        """Serialize to UTF-8 JSON bytes (the persisted value format)."""
        return json.dumps(
            {
                "data": encode_payload(self.data),
                "cached_at": to_iso(self.cached_at),
                "ttl_seconds": self.ttl_seconds,
            },
            ensure_ascii=False,
            separators=(",", ":"),
        ).encode("utf-8")

    @classmethod
    def from_json(cls, raw: bytes | str) -> "CacheEntry[Any]":
        """
        Deserialize an entry written by to_json().

        Raises:
            ValueError: Malformed JSON or missing/invalid fields.
        """
        try:
            doc = json.loads(raw)
            return cls(
                data=doc["data"],
                cached_at=from_iso(doc["cached_at"]),
                ttl_seconds=int(doc["ttl_seconds"]),
            )
        except (KeyError, TypeError) as e:
            raise ValueError(f"Invalid cache entry: {e}") from e


class CacheKind(StrEnum):
    """Closed set of cache key kinds."""

    ARTICLE = "article"
    SEARCH = "search"
    STORY = "story"
    COMMENTS = "comments"
    CONTENT = "content"
    LIST = "list"


# Kinds whose identifiers are unbounded free text and get hashed
_HASHED_KINDS = {CacheKind.SEARCH, CacheKind.CONTENT}


def hash_string(value: str) -> str:
    """First 8 bytes of SHA-256, hex encoded (16 characters)."""
    return hashlib.sha256(value.encode("utf-8")).digest()[:8].hex()


@dataclass(frozen=True)
class CacheKey:
    """
    Logical cache key.

    Usage:
        key = CacheKey.story(12345)
        key.as_cache_key()  # "story:12345"
    """

    kind: CacheKind
    value: str

    @classmethod
    def article(cls, article_id: str) -> "CacheKey":
        return cls(CacheKind.ARTICLE, str(article_id))

    @classmethod
    def search(cls, query: str) -> "CacheKey":
        return cls(CacheKind.SEARCH, query)

    @classmethod
    def story(cls, story_id: int | str) -> "CacheKey":
        return cls(CacheKind.STORY, str(story_id))

    @classmethod
    def comments(cls, item_id: int | str) -> "CacheKey":
        return cls(CacheKind.COMMENTS, str(item_id))

    @classmethod
    def content(cls, url: str) -> "CacheKey":
        return cls(CacheKind.CONTENT, url)

    @classmethod
    def story_list(cls, category: str) -> "CacheKey":
        return cls(CacheKind.LIST, category)

    def as_cache_key(self) -> str:
        """Stable flat string used as the store key."""
        if self.kind in _HASHED_KINDS:
            return f"{self.kind.value}:{hash_string(self.value)}"
        return f"{self.kind.value}:{self.value}"

    def __str__(self) -> str:
        return self.as_cache_key()


@dataclass
class CacheStats:
    """Running cache counters."""

    total_entries: int = 0
    total_size_bytes: int = 0
    hits: int = 0
    misses: int = 0
    evictions: int = 0

    @property
    def hit_rate(self) -> float:
        """Hit rate as a percentage."""
        lookups = self.hits + self.misses
        if lookups == 0:
            return 0.0
        return self.hits / lookups * 100.0
