"""
Primitives — atomic building blocks for providers.

Each primitive does ONE thing well.
"""

from newsdeck.core.primitives.fetcher import (
    ContentType,
    Fetcher,
    FetcherConfig,
    FetchError,
    FetchResult,
)

__all__ = [
    "ContentType",
    "Fetcher",
    "FetcherConfig",
    "FetchError",
    "FetchResult",
]
