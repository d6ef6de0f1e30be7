"""
arXiv provider.

Fetches the latest papers from arXiv's per-category RSS feeds.
"""

import logging
from enum import Enum

from newsdeck.core.models import FeedItem, FeedItemMetadata
from newsdeck.core.providers.base import BaseProvider
from newsdeck.core.providers.feeds import FeedEntry, parse_feed
from newsdeck.core.providers.text import collapse_ws, html_to_text
from newsdeck.core.utils.time import utcnow

logger = logging.getLogger(__name__)

ARXIV_RSS_BASE = "https://rss.arxiv.org/rss"


class ArxivCategory(Enum):
    """arXiv subject area: (RSS path, display name)."""

    CS = ("cs", "Computer Science")
    CS_AI = ("cs.AI", "AI")
    CS_LG = ("cs.LG", "Machine Learning")
    CS_CL = ("cs.CL", "NLP")
    CS_CV = ("cs.CV", "Computer Vision")
    CS_NE = ("cs.NE", "Neural Computing")
    MATH = ("math", "Mathematics")
    PHYSICS = ("physics", "Physics")
    STAT = ("stat", "Statistics")

    @property
    def rss_path(self) -> str:
        return self.value[0]

    @property
    def display_name(self) -> str:
        return self.value[1]

    @classmethod
    def from_str(cls, value: str | None) -> "ArxivCategory":
        """Parse a category name or alias; unknown names fall back to CS."""
        return _CATEGORY_ALIASES.get((value or "").strip().lower(), cls.CS)


_CATEGORY_ALIASES = {
    "cs": ArxivCategory.CS,
    "cs.ai": ArxivCategory.CS_AI,
    "ai": ArxivCategory.CS_AI,
    "cs.lg": ArxivCategory.CS_LG,
    "lg": ArxivCategory.CS_LG,
    "ml": ArxivCategory.CS_LG,
    "machine learning": ArxivCategory.CS_LG,
    "cs.cl": ArxivCategory.CS_CL,
    "cl": ArxivCategory.CS_CL,
    "nlp": ArxivCategory.CS_CL,
    "cs.cv": ArxivCategory.CS_CV,
    "cv": ArxivCategory.CS_CV,
    "vision": ArxivCategory.CS_CV,
    "cs.ne": ArxivCategory.CS_NE,
    "ne": ArxivCategory.CS_NE,
    "neural": ArxivCategory.CS_NE,
    "math": ArxivCategory.MATH,
    "mathematics": ArxivCategory.MATH,
    "physics": ArxivCategory.PHYSICS,
    "phys": ArxivCategory.PHYSICS,
    "stat": ArxivCategory.STAT,
    "statistics": ArxivCategory.STAT,
}


class ArxivProvider(BaseProvider):
    """Fetches papers from one arXiv category feed."""

    def __init__(
        self,
        category: str | None = None,
        enabled: bool = True,
        timeout: float = 15.0,
        connect_timeout: float = 5.0,
        base_url: str = ARXIV_RSS_BASE,
    ):
        super().__init__(
            timeout=timeout,
            connect_timeout=connect_timeout,
            enabled=enabled,
        )
        self.category = ArxivCategory.from_str(category)
        self.base_url = base_url.rstrip("/")

    @property
    def id(self) -> str:
        return "arxiv"

    @property
    def name(self) -> str:
        return "arXiv"

    @property
    def description(self) -> str:
        return "Open-access research papers in physics, mathematics, and computer science"

    @property
    def icon(self) -> str:
        return "[aX]"

    def categories(self) -> list[str]:
        return ["cs", "cs.ai", "cs.lg", "cs.cl", "cs.cv", "math", "physics", "stat"]

    def set_category(self, category: ArxivCategory | str) -> None:
        self.category = (
            category if isinstance(category, ArxivCategory) else ArxivCategory.from_str(category)
        )

    async def fetch_items(self, limit: int) -> list[FeedItem]:
        url = f"{self.base_url}/{self.category.rss_path}"
        xml = await self._get_text(url)
        entries = parse_feed(xml, source=f"arXiv {self.category.rss_path}")
        return [self._convert_to_feed_item(entry) for entry in entries[:max(limit, 0)]]

    def _convert_to_feed_item(self, entry: FeedEntry) -> FeedItem:
        link = entry.link or ""
        arxiv_id = link.rstrip("/").rsplit("/", 1)[-1] or entry.id

        metadata = FeedItemMetadata(tags=[self.category.display_name, "paper"])

        item = FeedItem(
            id=arxiv_id,
            provider_id=self.id,
            # Titles arrive wrapped across lines
            title=collapse_ws(entry.title),
            source=f"arXiv:{self.category.display_name}",
            published_at=entry.published_at or utcnow(),
            metadata=metadata,
        )
        if link:
            item.with_url(link)
        if entry.author:
            item.with_author(entry.author)

        summary = html_to_text(entry.summary)
        if summary.strip():
            item.with_summary(summary)

        return item
