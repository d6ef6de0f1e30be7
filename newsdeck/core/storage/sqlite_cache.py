"""
Persistent TTL cache on SQLite.

Entries live in a single store directory (<path>/cache.sqlite3), one row
per key. Values are UTF-8 JSON CacheEntry documents, so an entry written
by an incompatible version fails to decode instead of returning garbage.

Expiry is lazy: an expired entry is removed when it is read. Capacity is
enforced on every write by evicting the oldest quarter of entries once
the total key+value size exceeds the budget.
"""

import asyncio
import logging
import shutil
import sqlite3
from collections.abc import Awaitable, Callable
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime
from typing import Any, TypeVar

import aiosqlite

from newsdeck.core.models import CacheEntry, CacheKey, CacheStats
from newsdeck.core.storage.base import BaseCache, CacheConfig
from newsdeck.core.storage.exceptions import (
    CacheMissError,
    ConfigurationError,
    ExpiredError,
    NotFoundError,
    SerializationError,
    StoreError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

STORE_FILENAME = "cache.sqlite3"

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS entries (
    key TEXT PRIMARY KEY,
    value BLOB NOT NULL
);
"""

_SIZE_SQL = "SELECT COALESCE(SUM(length(CAST(key AS BLOB)) + length(value)), 0) FROM entries"


def _key_str(key: CacheKey | str) -> str:
    return key.as_cache_key() if isinstance(key, CacheKey) else str(key)


@contextmanager
def _store_errors(operation: str):
    """Re-raise SQLite failures as StoreError."""
    try:
        yield
    except sqlite3.Error as e:
        raise StoreError(f"Cache {operation} failed: {e}") from e


class CacheManager(BaseCache):
    """
    SQLite-backed cache manager.

    Usage:
        async with CacheManager(CacheConfig(path=tmp_dir)) as cache:
            await cache.set(CacheKey.story(12345), "x", ttl=60)
            value = await cache.get(CacheKey.story(12345))

            items = await cache.get_or_set(
                CacheKey.story_list("top"), fetch_top_stories, ttl=300
            )
    """

    def __init__(self, config: CacheConfig):
        """Initialize cache with configuration."""
        if config.max_size_mb <= 0:
            raise ConfigurationError("Cache max size must be greater than 0")
        super().__init__(config)
        self._db: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()
        self._stats = CacheStats()

    @property
    def store_path(self):
        return self.config.path / STORE_FILENAME

    async def connect(self) -> None:
        """
        Open the store, creating it if needed.

        A store that is corrupted or locked by another process is deleted
        and recreated empty.

        Raises:
            StoreError: The fresh store could not be opened either.
        """
        if self._db is not None:
            return

        try:
            self._db = await self._open()
        except sqlite3.DatabaseError as e:
            logger.warning(f"Cache store at {self.config.path} unusable, resetting: {e}")
            shutil.rmtree(self.config.path, ignore_errors=True)
            try:
                self._db = await self._open()
            except sqlite3.Error as retry_error:
                raise StoreError(
                    f"Failed to open cache store at {self.config.path}: {retry_error}"
                ) from retry_error

        logger.info(f"Opened cache store at {self.store_path}")

    async def _open(self) -> aiosqlite.Connection:
        self.config.path.mkdir(parents=True, exist_ok=True)
        db = await aiosqlite.connect(self.store_path.as_posix(), timeout=1.0)
        try:
            await db.execute("PRAGMA journal_mode=WAL")
            await db.executescript(SCHEMA_SQL)
            # Forces a read so corruption surfaces here rather than later
            cursor = await db.execute("SELECT COUNT(*) FROM entries")
            await cursor.fetchone()
            await db.commit()
        except sqlite3.Error:
            await db.close()
            raise
        return db

    async def disconnect(self) -> None:
        """Flush pending writes and close the store."""
        if self._db is None:
            return
        try:
            await self.flush()
        finally:
            await self._db.close()
            self._db = None
            logger.info("Closed cache store")

    async def __aenter__(self) -> "CacheManager":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.disconnect()

    def _conn(self) -> aiosqlite.Connection:
        if self._db is None:
            raise StoreError("Cache not connected. Call connect() first.")
        return self._db

    async def health_check(self) -> bool:
        if self._db is None:
            return False
        try:
            cursor = await self._db.execute("SELECT 1")
            await cursor.fetchone()
            return True
        except sqlite3.Error as e:
            logger.warning(f"Cache health check failed: {e}")
            return False

    async def get(
        self,
        key: CacheKey | str,
        decode: Callable[[Any], T] | None = None,
        now: datetime | None = None,
    ) -> Any:
        """
        Get a valid cached value.

        Args:
            key: Cache key.
            decode: Optional converter applied to the stored JSON payload
                (e.g. FeedItem.from_dict for a single item).
            now: Reference time for the validity check.

        Raises:
            NotFoundError: Nothing stored under the key.
            ExpiredError: The entry was stale; it has been removed.
            SerializationError: The stored entry could not be decoded.
            StoreError: The store failed.
        """
        key_str = _key_str(key)
        conn = self._conn()

        async with self._lock:
            with _store_errors("read"):
                cursor = await conn.execute("SELECT value FROM entries WHERE key = ?", (key_str,))
                row = await cursor.fetchone()

            if row is None:
                self._stats.misses += 1
                logger.debug(f"Cache miss: {key_str}")
                raise NotFoundError(key_str)

            try:
                entry = CacheEntry.from_json(row[0])
            except ValueError as e:
                raise SerializationError(f"Cannot decode cache entry {key_str}: {e}") from e

            if not entry.is_valid(now):
                with _store_errors("delete"):
                    await conn.execute("DELETE FROM entries WHERE key = ?", (key_str,))
                    await conn.commit()
                self._stats.misses += 1
                logger.debug(f"Cache entry expired: {key_str}")
                raise ExpiredError(key_str)

            self._stats.hits += 1

        if decode is None:
            return entry.data
        try:
            return decode(entry.data)
        except (KeyError, TypeError, ValueError) as e:
            raise SerializationError(f"Cannot decode cached value {key_str}: {e}") from e

    async def get_or_none(
        self,
        key: CacheKey | str,
        decode: Callable[[Any], T] | None = None,
    ) -> Any | None:
        """Like get(), but returns None on a miss."""
        try:
            return await self.get(key, decode=decode)
        except CacheMissError:
            return None

    async def set(self, key: CacheKey | str, value: Any, ttl: int | None = None) -> None:
        """
        Store a value and enforce the size budget.

        Raises:
            SerializationError: The value isn't JSON-serializable.
            StoreError: The store failed.
        """
        key_str = _key_str(key)
        ttl = self.config.default_ttl if ttl is None else ttl
        try:
            payload = CacheEntry.new(value, ttl).to_json()
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Cannot encode value for {key_str}: {e}") from e

        conn = self._conn()
        async with self._lock:
            with _store_errors("write"):
                await conn.execute(
                    "INSERT OR REPLACE INTO entries(key, value) VALUES(?, ?)",
                    (key_str, payload),
                )
                await conn.commit()
                await self._evict_if_needed(conn)

    async def get_or_set(
        self,
        key: CacheKey | str,
        factory: Callable[[], Awaitable[T]],
        ttl: int | None = None,
        decode: Callable[[Any], T] | None = None,
    ) -> T:
        """
        Return the cached value, or compute it with factory() and cache it.

        Only misses trigger the factory; store and decode failures propagate.
        """
        try:
            return await self.get(key, decode=decode)
        except CacheMissError:
            pass
        value = await factory()
        await self.set(key, value, ttl)
        return value

    async def remove(self, key: CacheKey | str) -> bool:
        key_str = _key_str(key)
        conn = self._conn()
        async with self._lock:
            with _store_errors("delete"):
                cursor = await conn.execute("DELETE FROM entries WHERE key = ?", (key_str,))
                await conn.commit()
        return cursor.rowcount > 0

    async def clear(self) -> None:
        """Delete every entry and reset the counters."""
        conn = self._conn()
        async with self._lock:
            with _store_errors("clear"):
                await conn.execute("DELETE FROM entries")
                await conn.commit()
            self._stats = CacheStats()
        logger.info("Cache cleared")

    async def flush(self) -> None:
        """Commit and checkpoint the write-ahead log into the main file."""
        conn = self._conn()
        async with self._lock:
            with _store_errors("flush"):
                await conn.commit()
                await conn.execute("PRAGMA wal_checkpoint(TRUNCATE)")

    async def stats(self) -> CacheStats:
        """Current counters; entry count and size are recomputed."""
        conn = self._conn()
        async with self._lock:
            with _store_errors("stats"):
                cursor = await conn.execute("SELECT COUNT(*) FROM entries")
                (count,) = await cursor.fetchone()
                self._stats.total_entries = count
                self._stats.total_size_bytes = await self._total_size(conn)
        return replace(self._stats)

    async def _total_size(self, conn: aiosqlite.Connection) -> int:
        cursor = await conn.execute(_SIZE_SQL)
        (size,) = await cursor.fetchone()
        return int(size)

    async def _evict_if_needed(self, conn: aiosqlite.Connection) -> None:
        """
        Evict the oldest max(1, n // 4) entries when over budget.

        Age is cached_at; entries with equal cached_at go in write order
        (rowid grows with each INSERT OR REPLACE). Entries that fail to
        decode are not considered.
        """
        if await self._total_size(conn) <= self.config.max_size_bytes:
            return

        cursor = await conn.execute("SELECT key, value FROM entries ORDER BY rowid")
        rows = await cursor.fetchall()

        aged: list[tuple[datetime, str]] = []
        for key, value in rows:
            try:
                aged.append((CacheEntry.from_json(value).cached_at, key))
            except ValueError:
                continue

        # list.sort is stable, so rowid order breaks ties
        aged.sort(key=lambda pair: pair[0])
        victims = [key for _, key in aged[: max(1, len(aged) // 4)]] if aged else []
        if not victims:
            return

        await conn.executemany("DELETE FROM entries WHERE key = ?", [(k,) for k in victims])
        await conn.commit()
        self._stats.evictions += len(victims)
        logger.info(f"Evicted {len(victims)} cache entries (size over budget)")
