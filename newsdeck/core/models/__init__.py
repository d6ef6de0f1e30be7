"""
Data models for newsdeck.

This module exports the unified item model and cache data structures.
"""

from newsdeck.core.models.cache import CacheEntry, CacheKey, CacheKind, CacheStats
from newsdeck.core.models.feed_item import (
    Comment,
    FeedItem,
    FeedItemMetadata,
    LinkPreview,
    Sentiment,
    SentimentLabel,
)

__all__ = [
    "CacheEntry",
    "CacheKey",
    "CacheKind",
    "CacheStats",
    "Comment",
    "FeedItem",
    "FeedItemMetadata",
    "LinkPreview",
    "Sentiment",
    "SentimentLabel",
]
