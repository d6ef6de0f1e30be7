"""
Crates.io provider.

Lists new, updated, and popular Rust crates via the crates.io JSON API.
Supports search and page-based pagination.
"""

import logging
from enum import StrEnum
from typing import Any

from newsdeck.core.models import FeedItem, FeedItemMetadata
from newsdeck.core.providers.base import BaseProvider, parse_datetime_or_now
from newsdeck.core.providers.exceptions import ParseError

logger = logging.getLogger(__name__)

CRATES_IO_API = "https://crates.io/api/v1"
# crates.io rejects per_page above 100
MAX_PER_PAGE = 100


class CratesCategory(StrEnum):
    """Crates listing; values are the API's sort parameter."""

    NEW = "new"
    JUST_UPDATED = "recent-updates"
    MOST_DOWNLOADED = "downloads"
    RECENTLY_DOWNLOADED = "recent-downloads"

    @property
    def source_label(self) -> str:
        return {
            CratesCategory.NEW: "New Crates",
            CratesCategory.JUST_UPDATED: "Updated Crates",
            CratesCategory.MOST_DOWNLOADED: "Popular Crates",
            CratesCategory.RECENTLY_DOWNLOADED: "Trending Crates",
        }[self]

    @classmethod
    def from_str(cls, value: str | None) -> "CratesCategory":
        normalized = (value or "").strip().lower()
        if normalized in ("updated", "just_updated", "justupdated"):
            return cls.JUST_UPDATED
        if normalized in ("downloaded", "most_downloaded", "mostdownloaded"):
            return cls.MOST_DOWNLOADED
        if normalized in ("recent", "recently_downloaded", "recentlydownloaded"):
            return cls.RECENTLY_DOWNLOADED
        return cls.NEW


class CratesIoProvider(BaseProvider):
    """Fetches crates from crates.io."""

    def __init__(
        self,
        category: str | None = None,
        enabled: bool = True,
        timeout: float = 30.0,
        connect_timeout: float = 10.0,
        base_url: str = CRATES_IO_API,
    ):
        super().__init__(
            timeout=timeout,
            connect_timeout=connect_timeout,
            # crates.io requires an identifying User-Agent
            user_agent="newsdeck/0.1 (https://github.com/newsdeck/newsdeck)",
            enabled=enabled,
        )
        self.category = CratesCategory.from_str(category)
        self.base_url = base_url.rstrip("/")

    @property
    def id(self) -> str:
        return "cratesio"

    @property
    def name(self) -> str:
        return "Crates.io"

    @property
    def description(self) -> str:
        return "The Rust community's crate registry"

    @property
    def icon(self) -> str:
        return "[CR]"

    def categories(self) -> list[str]:
        return ["new", "updated", "downloaded", "recent"]

    def set_category(self, category: CratesCategory | str) -> None:
        self.category = (
            category if isinstance(category, CratesCategory) else CratesCategory.from_str(category)
        )

    def supports_offset(self) -> bool:
        return True

    def supports_search(self) -> bool:
        return True

    async def fetch_items(self, limit: int) -> list[FeedItem]:
        if limit <= 0:
            return []
        return await self._list_crates({"sort": self.category.value}, limit)

    async def fetch_items_with_offset(self, offset: int, limit: int) -> list[FeedItem]:
        """Map offset onto crates.io's 1-based page numbers."""
        if limit <= 0:
            return []
        per_page = min(limit, MAX_PER_PAGE)
        page = offset // per_page + 1
        return await self._list_crates(
            {"sort": self.category.value, "page": page}, limit
        )

    async def search(self, query: str, limit: int) -> list[FeedItem]:
        if limit <= 0 or not query.strip():
            return []
        return await self._list_crates({"q": query}, limit)

    async def _list_crates(self, params: dict[str, Any], limit: int) -> list[FeedItem]:
        url = f"{self.base_url}/crates"
        data = await self._get_json(url, params={**params, "per_page": min(limit, MAX_PER_PAGE)})

        crates = data.get("crates") if isinstance(data, dict) else None
        if not isinstance(crates, list):
            raise ParseError(f"Missing 'crates' list in response from {url}")

        items: list[FeedItem] = []
        for crate in crates[:limit]:
            try:
                items.append(self._convert_to_feed_item(crate))
            except (KeyError, TypeError, ValueError) as e:
                raise ParseError(f"Invalid crate entry: {e}") from e
        return items

    def _convert_to_feed_item(self, crate: dict[str, Any]) -> FeedItem:
        name = crate["name"]
        version = crate.get("newest_version") or crate.get("max_version") or "?"

        metadata = FeedItemMetadata(
            score=crate.get("downloads"),
            tags=["rust", "crate"],
            extra={
                "recent_downloads": crate.get("recent_downloads"),
                "repository": crate.get("repository"),
                "documentation": crate.get("documentation"),
                "homepage": crate.get("homepage"),
            },
        )

        item = FeedItem(
            id=str(crate.get("id") or name),
            provider_id=self.id,
            title=f"{name} v{version}",
            source=self.category.source_label,
            published_at=parse_datetime_or_now(crate.get("updated_at")),
            url=f"https://crates.io/crates/{name}",
            metadata=metadata,
        )
        if crate.get("description"):
            item.with_summary(crate["description"].strip())
        return item
