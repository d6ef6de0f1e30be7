"""
Feed providers for newsdeck.

Each provider wraps one external source and returns FeedItems:
- HackerNewsProvider: Hacker News Firebase API (stories + comment trees)
- RedditProvider: subreddit Atom feeds (+ JSON comment trees)
- ArxivProvider: arXiv category RSS feeds
- CratesIoProvider: crates.io JSON API (pagination + search)
- FinnhubProvider: Finnhub market news (API key)
- RssProvider: any RSS/Atom feed
- ProviderRegistry: ordered registry and concurrent aggregator
"""

from newsdeck.core.providers.arxiv import ArxivCategory, ArxivProvider
from newsdeck.core.providers.base import (
    BaseProvider,
    ProviderStatus,
    ProviderSummary,
    StatusKind,
)
from newsdeck.core.providers.cratesio import CratesCategory, CratesIoProvider
from newsdeck.core.providers.exceptions import (
    AuthError,
    NetworkError,
    NotConfiguredError,
    ParseError,
    ProviderError,
    ProviderOtherError,
    RateLimitError,
)
from newsdeck.core.providers.finnhub import FinnhubProvider, NewsCategory
from newsdeck.core.providers.hackernews import HackerNewsProvider, HnCategory
from newsdeck.core.providers.link_preview import fetch_link_preview
from newsdeck.core.providers.reddit import RedditProvider, RedditSort
from newsdeck.core.providers.registry import FetchReport, ProviderRegistry
from newsdeck.core.providers.rss import RssProvider

__all__ = [
    # Contract
    "BaseProvider",
    "ProviderStatus",
    "ProviderSummary",
    "StatusKind",
    # Errors
    "ProviderError",
    "NetworkError",
    "AuthError",
    "RateLimitError",
    "ParseError",
    "NotConfiguredError",
    "ProviderOtherError",
    # Providers
    "ArxivCategory",
    "ArxivProvider",
    "CratesCategory",
    "CratesIoProvider",
    "FinnhubProvider",
    "NewsCategory",
    "HackerNewsProvider",
    "HnCategory",
    "RedditProvider",
    "RedditSort",
    "RssProvider",
    "fetch_link_preview",
    # Registry
    "FetchReport",
    "ProviderRegistry",
]
