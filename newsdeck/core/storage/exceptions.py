"""
Cache exceptions.

NotFoundError and ExpiredError are ordinary misses: callers recompute
the value. StoreError and SerializationError are real failures.
"""


class CacheError(Exception):
    """Base exception for all cache errors."""

    pass


class StoreError(CacheError):
    """Backing store could not be opened, read, or written."""

    pass


class SerializationError(CacheError):
    """Value could not be encoded, or a stored entry could not be decoded."""

    pass


class ConfigurationError(CacheError):
    """Invalid cache configuration."""

    pass


class CacheMissError(CacheError):
    """No usable value for the key."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"{self.reason}: {key}")

    reason = "Cache miss"


class NotFoundError(CacheMissError):
    """Nothing is stored under the key."""

    reason = "Cache entry not found"


class ExpiredError(CacheMissError):
    """The stored entry outlived its TTL and was removed."""

    reason = "Cache entry expired"
