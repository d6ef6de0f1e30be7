"""
Test fixtures for storage tests.

Each test gets its own cache directory under tmp_path.
"""

import pytest
import pytest_asyncio

from newsdeck.core.storage.base import CacheConfig
from newsdeck.core.storage.sqlite_cache import CacheManager


@pytest.fixture
def cache_config(tmp_path) -> CacheConfig:
    """Cache configuration pointing at a throwaway directory."""
    return CacheConfig(path=tmp_path / "cache", max_size_mb=10, default_ttl=3600)


@pytest_asyncio.fixture
async def cache(cache_config):
    """Connected cache, closed after the test."""
    manager = CacheManager(cache_config)
    await manager.connect()
    yield manager
    await manager.disconnect()
