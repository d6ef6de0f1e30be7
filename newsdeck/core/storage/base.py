"""
Base interfaces for storage components.

Cache implementations follow BaseCache so the services layer doesn't
depend on the backing store.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from newsdeck.core.models import CacheKey, CacheStats

DEFAULT_CACHE_DIR = Path("~/.cache/newsdeck")


@dataclass
class CacheConfig:
    """Configuration for the persistent cache."""

    path: Path = field(default_factory=lambda: DEFAULT_CACHE_DIR)
    max_size_mb: float = 100
    default_ttl: int = 3600

    def __post_init__(self):
        self.path = Path(self.path).expanduser()

    @property
    def max_size_bytes(self) -> int:
        return int(self.max_size_mb * 1024 * 1024)


class BaseCache(ABC):
    """
    Abstract base class for cache operations.

    Usage:
        cache = SomeCache(config)
        await cache.connect()

        await cache.set(CacheKey.story(1), data, ttl=3600)
        data = await cache.get(CacheKey.story(1))

        await cache.disconnect()
    """

    def __init__(self, config: CacheConfig):
        """Initialize with configuration."""
        self.config = config

    @abstractmethod
    async def connect(self) -> None:
        """Open the backing store."""

    @abstractmethod
    async def disconnect(self) -> None:
        """Flush and close the backing store."""

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the backing store is usable."""

    @abstractmethod
    async def get(
        self,
        key: CacheKey | str,
        decode: Callable[[Any], Any] | None = None,
    ) -> Any:
        """
        Get a valid cached value, optionally converted by decode().

        Raises:
            NotFoundError: Nothing stored under the key.
            ExpiredError: The entry's TTL has passed (it is removed).
        """

    @abstractmethod
    async def set(self, key: CacheKey | str, value: Any, ttl: int | None = None) -> None:
        """Store a value with a TTL in seconds (default_ttl when None)."""

    @abstractmethod
    async def remove(self, key: CacheKey | str) -> bool:
        """Delete a key. Returns True if it existed."""

    @abstractmethod
    async def clear(self) -> None:
        """Delete every entry and reset counters."""

    @abstractmethod
    async def flush(self) -> None:
        """Force pending writes to disk."""

    @abstractmethod
    async def stats(self) -> CacheStats:
        """Counters with entry count and size recomputed."""
