"""Tests for cache entries, keys, and stats."""

import json
from datetime import timedelta

import pytest

from newsdeck.core.models import CacheEntry, CacheKey, CacheKind, CacheStats, FeedItem
from newsdeck.core.models.cache import hash_string


class TestCacheEntry:
    """Tests for CacheEntry validity and serialization."""

    def test_valid_before_ttl(self, base_time):
        entry = CacheEntry(data="x", cached_at=base_time, ttl_seconds=60)
        assert entry.is_valid(now=base_time + timedelta(seconds=59))

    def test_invalid_at_ttl(self, base_time):
        """Validity is now - cached_at < ttl, so the boundary is expired."""
        entry = CacheEntry(data="x", cached_at=base_time, ttl_seconds=60)
        assert not entry.is_valid(now=base_time + timedelta(seconds=60))

    def test_invalid_after_ttl(self, base_time):
        entry = CacheEntry(data="x", cached_at=base_time, ttl_seconds=1)
        assert not entry.is_valid(now=base_time + timedelta(seconds=2))

    def test_remaining_ttl(self, base_time):
        entry = CacheEntry(data="x", cached_at=base_time, ttl_seconds=100)
        assert entry.remaining_ttl(now=base_time + timedelta(seconds=30)) == 70

    def test_new_stamps_current_time(self):
        entry = CacheEntry.new({"a": 1}, 10)
        assert entry.is_valid()
        assert entry.ttl_seconds == 10

    def test_to_json_is_utf8_json(self, base_time):
        entry = CacheEntry(data="héllo", cached_at=base_time, ttl_seconds=5)
        doc = json.loads(entry.to_json().decode("utf-8"))

        assert doc == {"data": "héllo", "cached_at": "2024-06-01T12:00:00+00:00", "ttl_seconds": 5}

    def test_feed_item_entry_round_trip(self, make_item, base_time):
        """A CacheEntry[FeedItem] decodes back to an equal item."""
        item = make_item(item_id="9", score=3, tags=["x"]).with_url("https://e.test")
        entry = CacheEntry(data=item, cached_at=base_time, ttl_seconds=300)

        decoded = CacheEntry.from_json(entry.to_json())

        assert FeedItem.from_dict(decoded.data) == item
        assert decoded.cached_at == entry.cached_at
        assert decoded.ttl_seconds == entry.ttl_seconds

    def test_from_json_rejects_malformed(self):
        with pytest.raises(ValueError):
            CacheEntry.from_json(b"not json")

    def test_from_json_rejects_missing_fields(self):
        with pytest.raises(ValueError):
            CacheEntry.from_json(b'{"data": 1}')


class TestCacheKey:
    """Tests for CacheKey string mapping."""

    def test_bounded_ids_concatenate(self):
        assert CacheKey.story(12345).as_cache_key() == "story:12345"
        assert CacheKey.article("abc").as_cache_key() == "article:abc"
        assert CacheKey.comments(7).as_cache_key() == "comments:7"
        assert CacheKey.story_list("top").as_cache_key() == "list:top"

    def test_free_text_is_hashed(self):
        """Queries and URLs become 16 hex characters."""
        key = CacheKey.search("rust async runtime").as_cache_key()
        prefix, digest = key.split(":", 1)

        assert prefix == "search"
        assert len(digest) == 16
        assert digest == hash_string("rust async runtime")

    def test_content_key_uses_url_hash(self):
        url = "https://example.com/a?b=c"
        assert CacheKey.content(url).as_cache_key() == f"content:{hash_string(url)}"

    def test_deterministic(self):
        assert CacheKey.search("q").as_cache_key() == CacheKey.search("q").as_cache_key()
        assert CacheKey.search("q").as_cache_key() != CacheKey.search("r").as_cache_key()

    def test_kind(self):
        assert CacheKey.story(1).kind is CacheKind.STORY


class TestCacheStats:
    def test_hit_rate(self):
        assert CacheStats(hits=3, misses=1).hit_rate == 75.0

    def test_hit_rate_without_lookups(self):
        assert CacheStats().hit_rate == 0.0
