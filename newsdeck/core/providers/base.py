"""
Base provider interface and common helpers.

All provider implementations inherit from BaseProvider.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from email.utils import parsedate_to_datetime
from enum import StrEnum
from typing import Any

from newsdeck.core.models import FeedItem
from newsdeck.core.primitives.fetcher import Fetcher, FetcherConfig, FetchError, FetchResult
from newsdeck.core.providers.exceptions import (
    AuthError,
    NetworkError,
    ParseError,
    ProviderOtherError,
    RateLimitError,
)
from newsdeck.core.utils.time import ensure_utc, from_timestamp, utcnow

logger = logging.getLogger(__name__)


class StatusKind(StrEnum):
    """Provider readiness states."""

    READY = "ready"
    NEEDS_CONFIG = "needs_config"
    DISABLED = "disabled"
    ERROR = "error"


_STATUS_ICONS = {
    StatusKind.READY: "✓",
    StatusKind.NEEDS_CONFIG: "⚠",
    StatusKind.DISABLED: "○",
    StatusKind.ERROR: "✗",
}


@dataclass(frozen=True)
class ProviderStatus:
    """Current status of a provider; ERROR carries a reason."""

    kind: StatusKind
    reason: str | None = None

    @classmethod
    def ready(cls) -> "ProviderStatus":
        return cls(StatusKind.READY)

    @classmethod
    def needs_config(cls) -> "ProviderStatus":
        return cls(StatusKind.NEEDS_CONFIG)

    @classmethod
    def disabled(cls) -> "ProviderStatus":
        return cls(StatusKind.DISABLED)

    @classmethod
    def error(cls, reason: str) -> "ProviderStatus":
        return cls(StatusKind.ERROR, reason)

    @property
    def is_ready(self) -> bool:
        return self.kind == StatusKind.READY

    @property
    def indicator(self) -> str:
        return _STATUS_ICONS[self.kind]

    def __str__(self) -> str:
        if self.kind == StatusKind.READY:
            return "✓ Ready"
        if self.kind == StatusKind.NEEDS_CONFIG:
            return "⚠ Needs Config"
        if self.kind == StatusKind.DISABLED:
            return "○ Disabled"
        return f"✗ Error: {self.reason}"


@dataclass(frozen=True)
class ProviderSummary:
    """Provider listing entry for display."""

    id: str
    name: str
    icon: str
    description: str
    status: ProviderStatus

    def display_line(self) -> str:
        return f"{self.icon} {self.name} - {self.description}"

    @property
    def status_indicator(self) -> str:
        return self.status.indicator


def timestamp_or_now(seconds: float | int | None) -> datetime:
    """Unix timestamp to aware datetime, falling back to now."""
    return from_timestamp(seconds) or utcnow()


def parse_datetime_or_now(value: str | None) -> datetime:
    """
    Parse an RFC 3339 / ISO-8601 or RFC 2822 date, falling back to now.

    Feeds mix both formats, so both are tried.
    """
    if not value:
        return utcnow()
    text = value.strip()
    try:
        return ensure_utc(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        pass
    try:
        return ensure_utc(parsedate_to_datetime(text))
    except (TypeError, ValueError, IndexError):
        return utcnow()


def check_response(result: FetchResult) -> FetchResult:
    """
    Map HTTP status codes onto provider errors.

    Raises:
        AuthError: 401 or 403.
        RateLimitError: 429.
        NetworkError: any other non-2xx status.
    """
    if result.ok:
        return result
    if result.status_code in (401, 403):
        raise AuthError(f"HTTP {result.status_code} from {result.url}")
    if result.status_code == 429:
        raise RateLimitError(f"HTTP 429 from {result.url}")
    raise NetworkError(f"HTTP {result.status_code} from {result.url}")


class BaseProvider(ABC):
    """
    Abstract base class for feed providers.

    Each provider handles one external source and returns FeedItems.
    Optional capabilities (offset pagination, search) are advertised
    through supports_offset() / supports_search().
    """

    def __init__(
        self,
        timeout: float = 30.0,
        connect_timeout: float = 10.0,
        max_retries: int = 1,
        user_agent: str | None = None,
        enabled: bool = True,
    ):
        """
        Initialize HTTP access for the provider.

        Args:
            timeout: Total request timeout in seconds.
            connect_timeout: Connection timeout in seconds.
            max_retries: Attempts per request before giving up.
            user_agent: Overrides the default User-Agent header.
            enabled: Disabled providers report DISABLED status.
        """
        config = FetcherConfig(
            timeout=timeout,
            connect_timeout=connect_timeout,
            max_retries=max_retries,
        )
        if user_agent:
            config.user_agent = user_agent
        self.fetcher = Fetcher(config)
        self.enabled = enabled

    @property
    @abstractmethod
    def id(self) -> str:
        """Unique identifier (e.g. "hackernews")."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Display name (e.g. "Hacker News")."""

    @property
    def description(self) -> str:
        return ""

    @property
    def icon(self) -> str:
        return "•"

    def status(self) -> ProviderStatus:
        """Current status; providers with credentials override this."""
        if self.enabled:
            return ProviderStatus.ready()
        return ProviderStatus.disabled()

    def is_ready(self) -> bool:
        return self.status().is_ready

    def categories(self) -> list[str]:
        """Named sub-feeds this provider offers."""
        return []

    @abstractmethod
    async def fetch_items(self, limit: int) -> list[FeedItem]:
        """
        Fetch the latest items.

        Args:
            limit: Maximum number of items to return.

        Returns:
            At most `limit` items.

        Raises:
            ProviderError: On network, auth, rate-limit, or parse failures.
        """

    def supports_offset(self) -> bool:
        return False

    async def fetch_items_with_offset(self, offset: int, limit: int) -> list[FeedItem]:
        """Fetch a later page of items (infinite scroll)."""
        raise ProviderOtherError("Offset not supported")

    def offset_snapshot(self) -> list[Any] | None:
        """
        Pagination state captured by the last fetch_items().

        None for providers whose later pages don't depend on an earlier
        fetch; otherwise a JSON-serializable list (empty when nothing has
        been captured yet).
        """
        return None

    def restore_offset_snapshot(self, snapshot: list[Any]) -> None:
        """Reinstate pagination state saved alongside a cached first page."""

    def supports_search(self) -> bool:
        return False

    async def search(self, query: str, limit: int) -> list[FeedItem]:
        """Search items; providers without search return nothing."""
        return []

    async def aclose(self) -> None:
        """Release the provider's HTTP client."""
        await self.fetcher.aclose()

    async def _get(self, url: str, params: dict[str, Any] | None = None) -> FetchResult:
        """GET a URL, mapping transport failures and HTTP errors to ProviderError."""
        try:
            result = await self.fetcher.fetch(url, params=params)
        except FetchError as e:
            raise NetworkError(str(e)) from e
        return check_response(result)

    async def _get_json(self, url: str, params: dict[str, Any] | None = None) -> Any:
        """GET a URL and decode the JSON body."""
        result = await self._get(url, params)
        try:
            return result.json()
        except ValueError as e:
            raise ParseError(f"Invalid JSON from {url}: {e}") from e

    async def _get_text(self, url: str, params: dict[str, Any] | None = None) -> str:
        """GET a URL and return the decoded body."""
        result = await self._get(url, params)
        if result.text is None:
            raise ParseError(f"Non-text response from {url}")
        return result.text

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(id='{self.id}', status='{self.status().kind}')>"
