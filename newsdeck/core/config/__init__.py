"""Config module — loading and managing configuration."""

from newsdeck.core.config.loader import get_config, get_section, reload_config
from newsdeck.core.config.settings import (
    AppSettings,
    ArxivSettings,
    CacheSettings,
    CratesIoSettings,
    FinnhubSettings,
    HackerNewsSettings,
    RedditSettings,
    RssFeedSettings,
    RssSettings,
)

__all__ = [
    "get_config",
    "get_section",
    "reload_config",
    "AppSettings",
    "ArxivSettings",
    "CacheSettings",
    "CratesIoSettings",
    "FinnhubSettings",
    "HackerNewsSettings",
    "RedditSettings",
    "RssFeedSettings",
    "RssSettings",
]
