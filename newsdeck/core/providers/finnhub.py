"""
Finnhub financial news provider.

Requires an API key; without one the provider reports NEEDS_CONFIG and
fetches fail fast with NotConfiguredError (no request is made).
"""

import logging
from enum import StrEnum
from typing import Any

from newsdeck.core.models import FeedItem, FeedItemMetadata
from newsdeck.core.providers.base import BaseProvider, ProviderStatus, timestamp_or_now
from newsdeck.core.providers.exceptions import NotConfiguredError, ParseError

logger = logging.getLogger(__name__)

FINNHUB_API = "https://finnhub.io/api/v1"


class NewsCategory(StrEnum):
    """Finnhub market news category."""

    GENERAL = "general"
    FOREX = "forex"
    CRYPTO = "crypto"
    MERGER = "merger"

    @classmethod
    def from_str(cls, value: str | None) -> "NewsCategory":
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.GENERAL


class FinnhubProvider(BaseProvider):
    """Market news from Finnhub."""

    def __init__(
        self,
        api_key: str = "",
        category: str | None = None,
        enabled: bool = True,
        timeout: float = 30.0,
        connect_timeout: float = 10.0,
        base_url: str = FINNHUB_API,
    ):
        super().__init__(timeout=timeout, connect_timeout=connect_timeout, enabled=enabled)
        self.api_key = api_key or ""
        self.category = NewsCategory.from_str(category)
        self.base_url = base_url.rstrip("/")

    @property
    def id(self) -> str:
        return "finnhub"

    @property
    def name(self) -> str:
        return "Finnhub"

    @property
    def description(self) -> str:
        return "Real-time financial news from markets worldwide"

    @property
    def icon(self) -> str:
        return "[FH]"

    def status(self) -> ProviderStatus:
        if not self.enabled:
            return ProviderStatus.disabled()
        if not self.api_key:
            return ProviderStatus.needs_config()
        return ProviderStatus.ready()

    def categories(self) -> list[str]:
        return [c.value for c in NewsCategory]

    async def fetch_items(self, limit: int) -> list[FeedItem]:
        if not self.api_key:
            raise NotConfiguredError("Finnhub API key not set")

        url = f"{self.base_url}/news"
        data = await self._get_json(
            url, params={"category": self.category.value, "token": self.api_key}
        )
        if not isinstance(data, list):
            raise ParseError(f"Expected a list of news items from {url}")

        items: list[FeedItem] = []
        for raw in data[:max(limit, 0)]:
            try:
                items.append(self._convert_to_feed_item(raw))
            except (KeyError, TypeError, ValueError) as e:
                raise ParseError(f"Invalid Finnhub news item: {e}") from e
        return items

    def _convert_to_feed_item(self, raw: dict[str, Any]) -> FeedItem:
        related = raw.get("related") or ""
        tags = [s.strip() for s in related.split(",") if s.strip()]
        if not tags and raw.get("category"):
            tags = [raw["category"]]

        metadata = FeedItemMetadata(
            tags=tags,
            image_url=raw.get("image") or None,
        )

        item = FeedItem(
            id=str(raw["id"]),
            provider_id=self.id,
            title=raw["headline"],
            source=raw.get("source") or "Finnhub",
            published_at=timestamp_or_now(raw.get("datetime")),
            metadata=metadata,
        )
        if raw.get("summary"):
            item.with_summary(raw["summary"])
        if raw.get("url"):
            item.with_url(raw["url"])
        return item
