"""
Test fixtures for services tests.

Provides a FeedService over stub providers and a real SQLite cache.
"""

import pytest
import pytest_asyncio

from newsdeck.core.models import FeedItem
from newsdeck.core.providers.base import BaseProvider
from newsdeck.core.providers.registry import ProviderRegistry
from newsdeck.core.services.feeds import FeedService
from newsdeck.core.storage.base import CacheConfig
from newsdeck.core.storage.sqlite_cache import CacheManager


class CountingProvider(BaseProvider):
    """Returns canned items and counts how often it was asked."""

    def __init__(self, provider_id: str, items: list[FeedItem], searchable: bool = False):
        super().__init__()
        self._id = provider_id
        self.items = items
        self.searchable = searchable
        self.fetch_calls = 0
        self.search_calls = 0

    @property
    def id(self) -> str:
        return self._id

    @property
    def name(self) -> str:
        return self._id

    async def fetch_items(self, limit: int) -> list[FeedItem]:
        self.fetch_calls += 1
        return self.items[:limit]

    def supports_search(self) -> bool:
        return self.searchable

    async def search(self, query: str, limit: int) -> list[FeedItem]:
        self.search_calls += 1
        return [i for i in self.items if query in i.title][:limit]


@pytest.fixture
def provider(make_item) -> CountingProvider:
    items = [make_item(str(i), "stub", minutes_ago=i, title=f"rust {i}") for i in range(10)]
    return CountingProvider("stub", items, searchable=True)


@pytest_asyncio.fixture
async def cache(tmp_path):
    manager = CacheManager(CacheConfig(path=tmp_path / "cache"))
    await manager.connect()
    yield manager
    await manager.disconnect()


@pytest_asyncio.fixture
async def service(provider, cache):
    registry = ProviderRegistry()
    registry.register(provider)
    feed_service = FeedService(registry, cache=cache, ttl=300)
    yield feed_service
    await feed_service.registry.aclose()
