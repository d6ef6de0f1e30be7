"""
Storage module.

Persistent TTL cache backed by SQLite (aiosqlite).

Usage:
    from newsdeck.core.storage import CacheConfig, CacheManager

    async with CacheManager(CacheConfig(path="~/.cache/newsdeck")) as cache:
        await cache.set(CacheKey.story(12345), "value", ttl=3600)
        value = await cache.get(CacheKey.story(12345))
"""

# Base classes and types
from newsdeck.core.storage.base import BaseCache, CacheConfig

# Exceptions
from newsdeck.core.storage.exceptions import (
    CacheError,
    CacheMissError,
    ConfigurationError,
    ExpiredError,
    NotFoundError,
    SerializationError,
    StoreError,
)

# SQLite cache
from newsdeck.core.storage.sqlite_cache import CacheManager

__all__ = [
    # Base classes
    "BaseCache",
    "CacheConfig",
    # Exceptions
    "CacheError",
    "CacheMissError",
    "ConfigurationError",
    "ExpiredError",
    "NotFoundError",
    "SerializationError",
    "StoreError",
    # SQLite
    "CacheManager",
]
