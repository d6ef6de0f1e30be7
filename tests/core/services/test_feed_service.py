"""Tests for FeedService caching and routing."""

from unittest.mock import AsyncMock, patch

import pytest

from newsdeck.core.config import AppSettings
from newsdeck.core.models import CacheKey, Comment, LinkPreview
from newsdeck.core.providers.base import StatusKind
from newsdeck.core.providers.exceptions import NotConfiguredError, ProviderOtherError
from newsdeck.core.providers.hackernews import HackerNewsProvider
from newsdeck.core.providers.reddit import RedditProvider
from newsdeck.core.providers.registry import ProviderRegistry
from newsdeck.core.services.feeds import FeedService, build_registry
from newsdeck.core.storage.exceptions import StoreError


class TestBuildRegistry:
    def test_registration_order(self):
        settings = AppSettings.from_dict(
            {"rss": {"feeds": ["https://blog.example.com/feed.xml"]}}
        )
        registry = build_registry(settings)

        assert registry.ids() == [
            "hackernews",
            "arxiv",
            "cratesio",
            "reddit",
            "rss:blog.example.com",
            "finnhub",
        ]

    def test_disabled_and_unconfigured_still_registered(self):
        settings = AppSettings.from_dict({"arxiv": {"enabled": False}})
        registry = build_registry(settings)

        assert registry.get("arxiv").status().kind is StatusKind.DISABLED
        assert registry.get("finnhub").status().kind is StatusKind.NEEDS_CONFIG
        assert "arxiv" not in [p.id for p in registry.ready()]


class TestFromSettings:
    @pytest.mark.asyncio
    async def test_opens_cache(self, tmp_path):
        settings = AppSettings.from_dict({"cache": {"path": str(tmp_path / "c"), "ttl": 90}})
        service = await FeedService.from_settings(settings)
        try:
            assert service.cache is not None
            assert service.ttl == 90
            assert await service.cache.health_check()
        finally:
            await service.close()

    @pytest.mark.asyncio
    async def test_cache_disabled(self):
        settings = AppSettings.from_dict({"cache": {"enabled": False}})
        service = await FeedService.from_settings(settings)
        assert service.cache is None
        await service.close()

    @pytest.mark.asyncio
    async def test_no_cache_flag(self, tmp_path):
        settings = AppSettings.from_dict({"cache": {"path": str(tmp_path / "c")}})
        service = await FeedService.from_settings(settings, use_cache=False)
        assert service.cache is None
        await service.close()


class TestFetchProvider:
    """Tests for the cached single-provider fetch."""

    @pytest.mark.asyncio
    async def test_second_fetch_served_from_cache(self, service, provider):
        first = await service.fetch_provider("stub", 5)
        second = await service.fetch_provider("stub", 5)

        assert second == first
        assert provider.fetch_calls == 1

    @pytest.mark.asyncio
    async def test_smaller_limit_uses_cache(self, service, provider):
        await service.fetch_provider("stub", 8)
        items = await service.fetch_provider("stub", 3)

        assert [i.id for i in items] == ["0", "1", "2"]
        assert provider.fetch_calls == 1

    @pytest.mark.asyncio
    async def test_larger_limit_refetches(self, service, provider):
        await service.fetch_provider("stub", 3)
        items = await service.fetch_provider("stub", 8)

        assert len(items) == 8
        assert provider.fetch_calls == 2

    @pytest.mark.asyncio
    async def test_unknown_provider(self, service):
        with pytest.raises(NotConfiguredError):
            await service.fetch_provider("nope", 5)

    @pytest.mark.asyncio
    async def test_without_cache_always_live(self, provider):
        registry = ProviderRegistry()
        registry.register(provider)
        service = FeedService(registry)

        await service.fetch_provider("stub", 5)
        await service.fetch_provider("stub", 5)

        assert provider.fetch_calls == 2
        await service.close()

    @pytest.mark.asyncio
    async def test_cache_failure_falls_through(self, service, provider, caplog):
        with patch.object(service.cache, "get", new=AsyncMock(side_effect=StoreError("disk gone"))):
            items = await service.fetch_provider("stub", 2)

        assert len(items) == 2
        assert provider.fetch_calls == 1
        assert "Cache read failed" in caplog.text


class TestOffsetSnapshot:
    """A cached first page keeps the ID snapshot it was built from."""

    @staticmethod
    def _hn_service(cache, listing: list[int]) -> tuple[FeedService, HackerNewsProvider, AsyncMock]:
        provider = HackerNewsProvider()
        story_ids = AsyncMock(side_effect=lambda category: list(listing))
        provider._fetch_story_ids = story_ids
        provider._fetch_item = AsyncMock(
            side_effect=lambda item_id: {"id": item_id, "title": f"Story {item_id}", "time": 1_700_000_000},
        )
        registry = ProviderRegistry()
        registry.register(provider)
        return FeedService(registry, cache=cache, ttl=300), provider, story_ids

    @pytest.mark.asyncio
    async def test_fetch_more_continues_cached_page(self, cache):
        first, _, _ = self._hn_service(cache, [1, 2, 3, 4])
        shown = await first.fetch_provider("hackernews", 2)

        # The live listing moved on; a new session starts from the cache
        second, provider, story_ids = self._hn_service(cache, [9, 8, 1, 2, 3, 4])
        cached = await second.fetch_provider("hackernews", 2)
        page = await second.fetch_more("hackernews", 2, 2)

        assert [i.id for i in shown] == [i.id for i in cached] == ["1", "2"]
        assert [i.id for i in page] == ["3", "4"]
        assert provider.offset_snapshot() == [1, 2, 3, 4]
        story_ids.assert_not_awaited()
        await first.registry.aclose()
        await second.registry.aclose()

    @pytest.mark.asyncio
    async def test_missing_snapshot_forces_live_fetch(self, cache):
        first, _, _ = self._hn_service(cache, [1, 2, 3, 4])
        await first.fetch_provider("hackernews", 2)
        await cache.remove(CacheKey.story_list("hackernews:top:offsets"))

        second, _, story_ids = self._hn_service(cache, [9, 8, 1, 2])
        items = await second.fetch_provider("hackernews", 2)

        assert [i.id for i in items] == ["9", "8"]
        story_ids.assert_awaited_once()
        await first.registry.aclose()
        await second.registry.aclose()


class TestSearch:
    @pytest.mark.asyncio
    async def test_search_cached_per_query(self, service, provider):
        first = await service.search("stub", "rust", 5)
        again = await service.search("stub", "rust", 5)
        other = await service.search("stub", "rust 1", 5)

        assert len(first) == 5
        assert again == first
        assert [i.id for i in other] == ["1"]
        assert provider.search_calls == 2

    @pytest.mark.asyncio
    async def test_short_cached_result_refetched(self, service, provider):
        await service.search("stub", "rust 1", 5)
        await service.search("stub", "rust 1", 5)

        assert provider.search_calls == 2

    @pytest.mark.asyncio
    async def test_non_searchable_provider(self, service, provider):
        provider.searchable = False
        assert await service.search("stub", "rust", 5) == []
        assert provider.search_calls == 0


class TestFetchComments:
    """Comments are routed by the item's back-references."""

    def _service(self, *providers) -> FeedService:
        registry = ProviderRegistry()
        for p in providers:
            registry.register(p)
        return FeedService(registry)

    @pytest.mark.asyncio
    async def test_hn_item(self, make_item):
        hn = HackerNewsProvider()
        service = self._service(hn)
        thread = [Comment(id="c1", author="a", text="hi")]

        with patch.object(hn, "fetch_comments", new=AsyncMock(return_value=thread)) as mock_fetch:
            comments = await service.fetch_comments(make_item(hn_id=42), max_depth=2)

        assert comments == thread
        mock_fetch.assert_awaited_once_with(42, max_depth=2)
        await service.close()

    @pytest.mark.asyncio
    async def test_reddit_item(self, make_item):
        reddit = RedditProvider()
        service = self._service(reddit)
        item = make_item(reddit_id="abc", subreddit="rust")

        with patch.object(reddit, "fetch_comments", new=AsyncMock(return_value=[])) as mock_fetch:
            await service.fetch_comments(item)

        mock_fetch.assert_awaited_once_with("rust", "abc", max_depth=3)
        await service.close()

    @pytest.mark.asyncio
    async def test_item_without_thread(self, make_item):
        service = self._service(HackerNewsProvider())
        with pytest.raises(ProviderOtherError):
            await service.fetch_comments(make_item())
        await service.close()

    @pytest.mark.asyncio
    async def test_owning_provider_missing(self, make_item):
        service = self._service()
        with pytest.raises(NotConfiguredError):
            await service.fetch_comments(make_item(hn_id=1))

    @pytest.mark.asyncio
    async def test_comments_cached(self, make_item, cache):
        hn = HackerNewsProvider()
        registry = ProviderRegistry()
        registry.register(hn)
        service = FeedService(registry, cache=cache)
        thread = [Comment(id="c1", author="a", text="hi", replies=[Comment(id="c2", author="b", text="yo", depth=1)])]

        with patch.object(hn, "fetch_comments", new=AsyncMock(return_value=thread)) as mock_fetch:
            first = await service.fetch_comments(make_item(hn_id=7))
            second = await service.fetch_comments(make_item(hn_id=7))

        assert second == first
        assert mock_fetch.await_count == 1
        await registry.aclose()


class TestLinkPreview:
    @pytest.mark.asyncio
    async def test_preview_cached(self, service):
        preview = LinkPreview(title="T", description="D")
        with patch(
            "newsdeck.core.services.feeds.fetch_link_preview",
            new=AsyncMock(return_value=preview),
        ) as mock_preview:
            first = await service.link_preview("https://example.com/a")
            second = await service.link_preview("https://example.com/a")

        assert first == second == preview
        assert mock_preview.await_count == 1

    @pytest.mark.asyncio
    async def test_missing_preview_not_cached(self, service):
        with patch(
            "newsdeck.core.services.feeds.fetch_link_preview",
            new=AsyncMock(return_value=None),
        ) as mock_preview:
            assert await service.link_preview("https://example.com/b") is None
            assert await service.link_preview("https://example.com/b") is None

        assert mock_preview.await_count == 2


class TestClose:
    @pytest.mark.asyncio
    async def test_close_disconnects_cache(self, provider, cache):
        registry = ProviderRegistry()
        registry.register(provider)

        async with FeedService(registry, cache=cache):
            pass

        assert await cache.health_check() is False
