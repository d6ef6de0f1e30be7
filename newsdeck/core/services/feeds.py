"""
Feed service.

Owns the provider registry and the optional persistent cache, and puts
the cache in front of provider calls. Built once at startup and passed
to whatever displays the feeds.

Cache problems never fail a request: misses and store errors both fall
through to a live fetch.
"""

import logging
from typing import Any, TypeVar

from newsdeck.core.config.settings import AppSettings
from newsdeck.core.models import CacheKey, Comment, FeedItem, LinkPreview
from newsdeck.core.primitives.fetcher import Fetcher, FetcherConfig
from newsdeck.core.providers.arxiv import ArxivProvider
from newsdeck.core.providers.cratesio import CratesIoProvider
from newsdeck.core.providers.exceptions import NotConfiguredError, ProviderOtherError
from newsdeck.core.providers.finnhub import FinnhubProvider
from newsdeck.core.providers.hackernews import HackerNewsProvider
from newsdeck.core.providers.link_preview import fetch_link_preview
from newsdeck.core.providers.reddit import RedditProvider
from newsdeck.core.providers.registry import FetchReport, ProviderRegistry
from newsdeck.core.providers.rss import RssProvider
from newsdeck.core.storage.base import BaseCache
from newsdeck.core.storage.exceptions import CacheError, CacheMissError
from newsdeck.core.storage.sqlite_cache import CacheManager

logger = logging.getLogger(__name__)

T = TypeVar("T")

PREVIEW_USER_AGENT = "Mozilla/5.0 (compatible; newsdeck/0.1)"


def build_registry(settings: AppSettings) -> ProviderRegistry:
    """
    Create every provider from settings, in display order.

    Disabled providers are still registered so they show up in the
    status summary.
    """
    registry = ProviderRegistry()

    registry.register(
        HackerNewsProvider(
            category=settings.hackernews.category,
            enabled=settings.hackernews.enabled,
        )
    )
    registry.register(
        ArxivProvider(category=settings.arxiv.category, enabled=settings.arxiv.enabled)
    )
    registry.register(
        CratesIoProvider(category=settings.cratesio.category, enabled=settings.cratesio.enabled)
    )
    registry.register(
        RedditProvider(
            subreddits=settings.reddit.subreddits,
            sort=settings.reddit.sort,
            enabled=settings.reddit.enabled,
        )
    )
    for feed in settings.rss.feeds:
        registry.register(RssProvider(url=feed.url, name=feed.name, enabled=feed.enabled))
    registry.register(
        FinnhubProvider(
            api_key=settings.finnhub.api_key,
            category=settings.finnhub.category,
            enabled=settings.finnhub.enabled,
            base_url=settings.finnhub.base_url,
        )
    )

    logger.debug(f"Registered providers: {', '.join(registry.ids())}")
    return registry


def _decode_items(data: list[dict[str, Any]]) -> list[FeedItem]:
    return [FeedItem.from_dict(d) for d in data]


def _decode_comments(data: list[dict[str, Any]]) -> list[Comment]:
    return [Comment.from_dict(d) for d in data]


class FeedService:
    """
    Single entry point for fetching feeds.

    Usage:
        service = await FeedService.from_settings(AppSettings.load())
        async with service:
            report = await service.fetch_everything(20)
            items = await service.fetch_provider("hackernews", 30)
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        cache: BaseCache | None = None,
        ttl: int | None = None,
        preview_fetcher: Fetcher | None = None,
    ):
        """
        Args:
            registry: Providers to serve.
            cache: Connected cache, or None to always fetch live.
            ttl: TTL for cached results; the cache default when None.
            preview_fetcher: HTTP fetcher for link previews.
        """
        self.registry = registry
        self.cache = cache
        self.ttl = ttl
        self._preview_fetcher = preview_fetcher or Fetcher(
            FetcherConfig(
                timeout=5.0,
                connect_timeout=5.0,
                max_retries=1,
                user_agent=PREVIEW_USER_AGENT,
            )
        )

    @classmethod
    async def from_settings(cls, settings: AppSettings, use_cache: bool = True) -> "FeedService":
        """Build the registry and open the cache described by settings."""
        registry = build_registry(settings)

        cache = None
        if use_cache and settings.cache.enabled:
            cache = CacheManager(settings.cache.to_cache_config())
            try:
                await cache.connect()
            except CacheError as e:
                logger.warning(f"Cache unavailable, continuing without it: {e}")
                cache = None

        return cls(registry, cache=cache, ttl=settings.cache.ttl)

    async def fetch_everything(self, limit_per_provider: int) -> FetchReport:
        """Fetch from all ready providers; failed providers are listed in the report."""
        return await self.registry.fetch_all_report(limit_per_provider)

    async def fetch_provider(self, provider_id: str, limit: int) -> list[FeedItem]:
        """
        Fetch one provider's feed, served from cache while fresh.

        Providers that page through a snapshot (Hacker News) have it
        cached next to the list, so fetch_more() continues from the page
        that was actually shown.

        Raises:
            NotConfiguredError: Unknown provider id.
            ProviderError: Live fetch failed.
        """
        provider = self.registry.require(provider_id)
        category = getattr(provider, "category", None)
        label = f"{provider_id}:{category}" if category else provider_id
        key = CacheKey.story_list(label)
        snapshot_key = CacheKey.story_list(f"{label}:offsets")

        cached = await self._cache_get(key, _decode_items)
        # A shorter cached list came from a smaller request
        if cached is not None and len(cached) >= limit:
            if provider.offset_snapshot() is None:
                return cached[:limit]
            snapshot = await self._cache_get(snapshot_key, list)
            if snapshot:
                provider.restore_offset_snapshot(snapshot)
                return cached[:limit]

        items = await provider.fetch_items(limit)
        snapshot = provider.offset_snapshot()
        if snapshot:
            await self._cache_set(snapshot_key, snapshot)
        await self._cache_set(key, items)
        return items

    async def fetch_more(self, provider_id: str, offset: int, limit: int) -> list[FeedItem]:
        """Fetch a later page; always live since pages shift over time."""
        return await self.registry.fetch_more(provider_id, offset, limit)

    async def search(self, provider_id: str, query: str, limit: int) -> list[FeedItem]:
        """Search one provider, cached by provider and query."""
        provider = self.registry.require(provider_id)
        if not provider.supports_search():
            return []

        key = CacheKey.search(f"{provider_id}:{query}")
        cached = await self._cache_get(key, _decode_items)
        if cached is not None and len(cached) >= limit:
            return cached[:limit]

        items = await provider.search(query, limit)
        await self._cache_set(key, items)
        return items

    async def search_all(self, query: str, limit_per_provider: int) -> list[FeedItem]:
        return await self.registry.search_all(query, limit_per_provider)

    async def fetch_comments(self, item: FeedItem, max_depth: int = 3) -> list[Comment]:
        """
        Fetch the discussion thread for an item.

        Routes on the item's back-references: hn_id goes to Hacker News,
        subreddit + reddit_id to Reddit.

        Raises:
            ProviderOtherError: The item has no discussion thread.
            NotConfiguredError: The owning provider isn't registered.
        """
        meta = item.metadata
        if meta.hn_id is not None:
            provider = self._provider_of_type("hackernews", HackerNewsProvider)
            key = CacheKey.comments(f"hn:{meta.hn_id}:{max_depth}")

            async def load() -> list[Comment]:
                return await provider.fetch_comments(meta.hn_id, max_depth=max_depth)

        elif meta.reddit_id and meta.subreddit:
            provider = self._provider_of_type("reddit", RedditProvider)
            key = CacheKey.comments(f"reddit:{meta.reddit_id}:{max_depth}")

            async def load() -> list[Comment]:
                return await provider.fetch_comments(
                    meta.subreddit, meta.reddit_id, max_depth=max_depth
                )

        else:
            raise ProviderOtherError(f"{item.source} items have no discussion threads")

        cached = await self._cache_get(key, _decode_comments)
        if cached is not None:
            return cached

        comments = await load()
        await self._cache_set(key, comments)
        return comments

    async def link_preview(self, url: str) -> LinkPreview | None:
        """Open Graph preview for a URL; None when the page has none."""
        key = CacheKey.content(url)
        cached = await self._cache_get(key, LinkPreview.from_dict)
        if cached is not None:
            return cached

        preview = await fetch_link_preview(self._preview_fetcher, url)
        if preview is not None:
            await self._cache_set(key, preview)
        return preview

    async def close(self) -> None:
        """Close provider clients and flush/close the cache."""
        await self.registry.aclose()
        await self._preview_fetcher.aclose()
        if self.cache is not None:
            try:
                await self.cache.disconnect()
            except CacheError as e:
                logger.warning(f"Failed to close cache cleanly: {e}")

    async def __aenter__(self) -> "FeedService":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _provider_of_type(self, provider_id: str, provider_type: type[T]) -> T:
        provider = self.registry.get(provider_id)
        if not isinstance(provider, provider_type):
            raise NotConfiguredError(f"Provider '{provider_id}' not registered")
        return provider

    async def _cache_get(self, key: CacheKey, decode) -> Any | None:
        if self.cache is None:
            return None
        try:
            return await self.cache.get(key, decode=decode)
        except CacheMissError:
            return None
        except CacheError as e:
            logger.warning(f"Cache read failed for {key}: {e}")
            return None

    async def _cache_set(self, key: CacheKey, value: Any) -> None:
        if self.cache is None:
            return
        try:
            await self.cache.set(key, value, self.ttl)
        except CacheError as e:
            logger.warning(f"Cache write failed for {key}: {e}")
