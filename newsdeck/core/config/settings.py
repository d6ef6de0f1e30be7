"""
Typed application settings.

Built from the merged YAML config dict. Values produced by environment
substitution arrive as strings and are coerced here.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from newsdeck.core.config.loader import get_config
from newsdeck.core.storage.base import DEFAULT_CACHE_DIR, CacheConfig
from newsdeck.core.storage.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def _as_bool(value: Any, default: bool) -> bool:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def _as_int(value: Any, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Expected an integer, got {value!r}") from e


def _as_float(value: Any, default: float) -> float:
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Expected a number, got {value!r}") from e


def _as_list(value: Any, default: list[str]) -> list[str]:
    if value is None or value == "":
        return list(default)
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return [str(v) for v in value]


@dataclass
class CacheSettings:
    enabled: bool = True
    ttl: int = 3600
    max_size_mb: float = 100
    path: str | None = None

    def __post_init__(self):
        if self.max_size_mb <= 0:
            raise ConfigurationError("Cache max size must be greater than 0")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CacheSettings":
        return cls(
            enabled=_as_bool(data.get("enabled"), True),
            ttl=_as_int(data.get("ttl"), 3600),
            max_size_mb=_as_float(data.get("max_size_mb"), 100),
            path=data.get("path") or None,
        )

    @property
    def cache_dir(self) -> Path:
        return Path(self.path).expanduser() if self.path else DEFAULT_CACHE_DIR.expanduser()

    def to_cache_config(self) -> CacheConfig:
        return CacheConfig(path=self.cache_dir, max_size_mb=self.max_size_mb, default_ttl=self.ttl)


@dataclass
class HackerNewsSettings:
    enabled: bool = True
    category: str = "top"
    max_stories: int = 50

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HackerNewsSettings":
        return cls(
            enabled=_as_bool(data.get("enabled"), True),
            category=data.get("category") or "top",
            max_stories=_as_int(data.get("max_stories"), 50),
        )


@dataclass
class RedditSettings:
    enabled: bool = True
    subreddits: list[str] = field(
        default_factory=lambda: ["technology", "programming", "rust", "finance"]
    )
    sort: str = "hot"
    max_posts: int = 50

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RedditSettings":
        defaults = cls()
        return cls(
            enabled=_as_bool(data.get("enabled"), True),
            subreddits=_as_list(data.get("subreddits"), defaults.subreddits),
            sort=data.get("sort") or "hot",
            max_posts=_as_int(data.get("max_posts"), 50),
        )


@dataclass
class FinnhubSettings:
    enabled: bool = True
    api_key: str = ""
    base_url: str = "https://finnhub.io/api/v1"
    category: str = "general"
    max_articles: int = 50

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FinnhubSettings":
        return cls(
            enabled=_as_bool(data.get("enabled"), True),
            api_key=str(data.get("api_key") or ""),
            base_url=data.get("base_url") or "https://finnhub.io/api/v1",
            category=data.get("category") or "general",
            max_articles=_as_int(data.get("max_articles"), 50),
        )

    def __repr__(self) -> str:
        # Keep the key out of logs
        masked = "***" if self.api_key else ""
        return (
            f"FinnhubSettings(enabled={self.enabled}, api_key='{masked}', "
            f"category='{self.category}')"
        )


@dataclass
class ArxivSettings:
    enabled: bool = True
    category: str = "cs.ai"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ArxivSettings":
        return cls(
            enabled=_as_bool(data.get("enabled"), True),
            category=data.get("category") or "cs.ai",
        )


@dataclass
class CratesIoSettings:
    enabled: bool = True
    category: str = "new"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CratesIoSettings":
        return cls(
            enabled=_as_bool(data.get("enabled"), True),
            category=data.get("category") or "new",
        )


@dataclass
class RssFeedSettings:
    url: str
    name: str | None = None
    enabled: bool = True


@dataclass
class RssSettings:
    feeds: list[RssFeedSettings] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RssSettings":
        feeds = []
        for raw in data.get("feeds") or []:
            if isinstance(raw, str):
                feeds.append(RssFeedSettings(url=raw))
            elif isinstance(raw, dict) and raw.get("url"):
                feeds.append(
                    RssFeedSettings(
                        url=raw["url"],
                        name=raw.get("name"),
                        enabled=_as_bool(raw.get("enabled"), True),
                    )
                )
            else:
                logger.warning(f"Skipping invalid RSS feed entry: {raw!r}")
        return cls(feeds=feeds)


@dataclass
class AppSettings:
    """All settings for one run."""

    max_items: int = 50
    log_level: str = "INFO"
    cache: CacheSettings = field(default_factory=CacheSettings)
    hackernews: HackerNewsSettings = field(default_factory=HackerNewsSettings)
    reddit: RedditSettings = field(default_factory=RedditSettings)
    finnhub: FinnhubSettings = field(default_factory=FinnhubSettings)
    arxiv: ArxivSettings = field(default_factory=ArxivSettings)
    cratesio: CratesIoSettings = field(default_factory=CratesIoSettings)
    rss: RssSettings = field(default_factory=RssSettings)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AppSettings":
        def section(name: str) -> dict[str, Any]:
            value = data.get(name) or {}
            return value if isinstance(value, dict) else {}

        return cls(
            max_items=_as_int(data.get("max_items"), 50),
            log_level=str(data.get("log_level") or "INFO").upper(),
            cache=CacheSettings.from_dict(section("cache")),
            hackernews=HackerNewsSettings.from_dict(section("hackernews")),
            reddit=RedditSettings.from_dict(section("reddit")),
            finnhub=FinnhubSettings.from_dict(section("finnhub")),
            arxiv=ArxivSettings.from_dict(section("arxiv")),
            cratesio=CratesIoSettings.from_dict(section("cratesio")),
            rss=RssSettings.from_dict(section("rss")),
        )

    @classmethod
    def load(cls, config_dir: str | None = None) -> "AppSettings":
        """Load settings from the YAML config directory."""
        return cls.from_dict(get_config(config_dir))

    def default_limit(self, provider_id: str) -> int:
        """Configured item count for one provider, else max_items."""
        limits = {
            "hackernews": self.hackernews.max_stories,
            "reddit": self.reddit.max_posts,
            "finnhub": self.finnhub.max_articles,
        }
        return limits.get(provider_id, self.max_items)
