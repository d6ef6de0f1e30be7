"""
Provider registry and aggregator.

Keeps providers in registration order and fans fetches out to them
concurrently. A failing provider never aborts an aggregate fetch; it
simply contributes no items.
"""

import asyncio
import logging
from dataclasses import dataclass, field

from newsdeck.core.models import FeedItem
from newsdeck.core.providers.base import BaseProvider, ProviderSummary
from newsdeck.core.providers.exceptions import (
    NotConfiguredError,
    ProviderError,
    ProviderOtherError,
)

logger = logging.getLogger(__name__)


@dataclass
class FetchReport:
    """Result of an aggregate fetch across providers."""

    items: list[FeedItem] = field(default_factory=list)
    providers_fetched: list[str] = field(default_factory=list)
    errors: dict[str, ProviderError] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors


def _as_provider_error(label: str, result: object) -> ProviderError | None:
    """
    Classify one gathered result.

    Returns None for a successful result and the provider's error otherwise.
    Unexpected exceptions count as that provider's failure; cancellation
    and other BaseExceptions are re-raised.
    """
    if isinstance(result, ProviderError):
        logger.warning(f"{label} failed: {result}")
        return result
    if isinstance(result, Exception):
        logger.exception(f"{label} failed unexpectedly", exc_info=result)
        return ProviderOtherError(str(result))
    if isinstance(result, BaseException):
        raise result
    return None


def sort_newest_first(items: list[FeedItem]) -> list[FeedItem]:
    """Sort by published_at descending; equal times keep their input order."""
    return sorted(items, key=lambda item: item.published_at, reverse=True)


class ProviderRegistry:
    """
    Ordered collection of providers.

    Registering an id that already exists replaces the provider but
    keeps its original position.
    """

    def __init__(self):
        self._providers: dict[str, BaseProvider] = {}

    def register(self, provider: BaseProvider) -> None:
        # dict assignment to an existing key keeps insertion order
        self._providers[provider.id] = provider
        logger.debug(f"Registered provider {provider.id}")

    def get(self, provider_id: str) -> BaseProvider | None:
        return self._providers.get(provider_id)

    def all(self) -> list[BaseProvider]:
        return list(self._providers.values())

    def ready(self) -> list[BaseProvider]:
        return [p for p in self._providers.values() if p.is_ready()]

    def ids(self) -> list[str]:
        return list(self._providers)

    def remove(self, provider_id: str) -> BaseProvider | None:
        return self._providers.pop(provider_id, None)

    def __len__(self) -> int:
        return len(self._providers)

    def __contains__(self, provider_id: object) -> bool:
        return provider_id in self._providers

    def __iter__(self):
        return iter(self.all())

    def require(self, provider_id: str) -> BaseProvider:
        """
        Look up a provider or raise.

        Raises:
            NotConfiguredError: If no provider has this id.
        """
        provider = self._providers.get(provider_id)
        if provider is None:
            raise NotConfiguredError(f"Provider '{provider_id}' not found")
        return provider

    async def fetch_all(self, limit_per_provider: int) -> list[FeedItem]:
        """
        Fetch from every ready provider concurrently.

        Returns:
            Merged items, newest first. Failed providers contribute nothing.
        """
        report = await self.fetch_all_report(limit_per_provider)
        return report.items

    async def fetch_all_report(self, limit_per_provider: int) -> FetchReport:
        """Like fetch_all, but also reports which providers failed and why."""
        providers = self.ready()
        results = await asyncio.gather(
            *(p.fetch_items(limit_per_provider) for p in providers),
            return_exceptions=True,
        )

        report = FetchReport()
        merged: list[FeedItem] = []
        for provider, result in zip(providers, results):
            error = _as_provider_error(f"Provider {provider.id}", result)
            if error is not None:
                report.errors[provider.id] = error
                continue
            merged.extend(result[:limit_per_provider])
            report.providers_fetched.append(provider.id)

        report.items = sort_newest_first(merged)
        logger.info(
            f"Fetched {len(report.items)} items from {len(report.providers_fetched)} "
            f"providers ({len(report.errors)} failed)"
        )
        return report

    async def fetch_from(self, provider_id: str, limit: int) -> list[FeedItem]:
        """
        Fetch from one provider.

        Raises:
            NotConfiguredError: Unknown provider id.
            ProviderError: Whatever the provider raised.
        """
        return await self.require(provider_id).fetch_items(limit)

    async def fetch_more(self, provider_id: str, offset: int, limit: int) -> list[FeedItem]:
        """Fetch a later page from one provider; errors propagate."""
        return await self.require(provider_id).fetch_items_with_offset(offset, limit)

    async def search_all(self, query: str, limit_per_provider: int) -> list[FeedItem]:
        """Search every ready provider that supports search."""
        providers = [p for p in self.ready() if p.supports_search()]
        results = await asyncio.gather(
            *(p.search(query, limit_per_provider) for p in providers),
            return_exceptions=True,
        )

        merged: list[FeedItem] = []
        for provider, result in zip(providers, results):
            if _as_provider_error(f"Search on {provider.id}", result) is not None:
                continue
            merged.extend(result)
        return sort_newest_first(merged)

    def status_summary(self) -> list[ProviderSummary]:
        return [
            ProviderSummary(
                id=p.id,
                name=p.name,
                icon=p.icon,
                description=p.description,
                status=p.status(),
            )
            for p in self._providers.values()
        ]

    async def aclose(self) -> None:
        """Close every provider's HTTP client."""
        for provider in self._providers.values():
            await provider.aclose()
