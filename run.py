#!/usr/bin/env python3
"""
newsdeck command line.

Usage:
    python run.py fetch --limit 10
    python run.py provider hackernews --offset 30
    python run.py providers
    python run.py search cratesio tokio
    python run.py preview https://example.com/post
    python run.py cache-stats
    python run.py cache-clear
"""

import argparse
import asyncio
import sys

from newsdeck.core.config.settings import AppSettings
from newsdeck.core.models import FeedItem
from newsdeck.core.providers.exceptions import ProviderError
from newsdeck.core.services.feeds import FeedService, build_registry
from newsdeck.core.storage.exceptions import CacheError
from newsdeck.core.storage.sqlite_cache import CacheManager
from newsdeck.core.utils.logging_setup import setup_logging


def format_item(item: FeedItem) -> str:
    """One display line for an item."""
    parts = [f"[{item.time_ago():>8}]", f"{item.source}:", item.title]
    extras = [s for s in (item.score_display(), item.comments_display()) if s]
    if extras:
        parts.append(f"({', '.join(extras)})")
    return " ".join(parts)


def print_items(items: list[FeedItem]) -> None:
    for item in items:
        print(format_item(item))
        if item.url:
            print(f"           {item.url}")


async def cmd_fetch(settings: AppSettings, limit: int, use_cache: bool) -> int:
    """Fetch from every ready provider and print the merged feed."""
    async with await FeedService.from_settings(settings, use_cache=use_cache) as service:
        report = await service.fetch_everything(limit)

    print_items(report.items)
    print(f"\n{len(report.items)} items from {len(report.providers_fetched)} providers")
    for provider_id, error in report.errors.items():
        print(f"  {provider_id}: {error}")
    return 0 if report.items or not report.errors else 1


async def cmd_provider(
    settings: AppSettings,
    provider_id: str,
    limit: int,
    offset: int,
    use_cache: bool,
) -> int:
    """Fetch one provider's feed."""
    async with await FeedService.from_settings(settings, use_cache=use_cache) as service:
        try:
            if offset > 0:
                items = await service.fetch_more(provider_id, offset, limit)
            else:
                items = await service.fetch_provider(provider_id, limit)
        except ProviderError as e:
            print(f"ERROR: {e}")
            return 1

    print_items(items)
    return 0


async def cmd_search(
    settings: AppSettings,
    provider_id: str,
    query: str,
    limit: int,
    use_cache: bool,
) -> int:
    async with await FeedService.from_settings(settings, use_cache=use_cache) as service:
        try:
            items = await service.search(provider_id, query, limit)
        except ProviderError as e:
            print(f"ERROR: {e}")
            return 1

    if not items:
        print("No results.")
    print_items(items)
    return 0


async def cmd_preview(settings: AppSettings, url: str, use_cache: bool) -> int:
    async with await FeedService.from_settings(settings, use_cache=use_cache) as service:
        preview = await service.link_preview(url)

    if preview is None:
        print("No preview available.")
        return 1

    print(f"Title:       {preview.title or '-'}")
    print(f"Site:        {preview.site_name or '-'}")
    print(f"Description: {preview.description or '-'}")
    if preview.reading_time:
        print(f"Reading:     ~{preview.reading_time} min")
    if preview.content_snippet:
        print(f"\n{preview.content_snippet}")
    return 0


async def cmd_providers(settings: AppSettings) -> int:
    """List providers and their status."""
    registry = build_registry(settings)
    try:
        for summary in registry.status_summary():
            print(f"{summary.status_indicator} {summary.id:<24} {summary.display_line()}")
            if not summary.status.is_ready:
                print(f"    {summary.status}")
    finally:
        await registry.aclose()
    return 0


async def cmd_cache_stats(settings: AppSettings) -> int:
    try:
        async with CacheManager(settings.cache.to_cache_config()) as cache:
            stats = await cache.stats()
    except CacheError as e:
        print(f"ERROR: {e}")
        return 1

    print(f"Cache:     {settings.cache.cache_dir}")
    print(f"Entries:   {stats.total_entries}")
    print(f"Size:      {stats.total_size_bytes / 1024:.1f} KiB")
    print(f"Budget:    {settings.cache.max_size_mb} MB")
    return 0


async def cmd_cache_clear(settings: AppSettings) -> int:
    try:
        async with CacheManager(settings.cache.to_cache_config()) as cache:
            await cache.clear()
    except CacheError as e:
        print(f"ERROR: {e}")
        return 1

    print(f"Cleared cache at {settings.cache.cache_dir}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Aggregate news feeds from several sources",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  run.py fetch                      Merged feed from all ready providers
  run.py provider reddit --limit 5  Latest posts from Reddit
  run.py provider hackernews --offset 30
  run.py providers                  Provider status
  run.py cache-clear                Delete all cached data
        """,
    )
    parser.add_argument("--config-dir", help="Directory with newsdeck.yaml")
    parser.add_argument("--log-level", help="Override the configured log level")
    parser.add_argument("--no-cache", action="store_true", help="Bypass the persistent cache")

    subparsers = parser.add_subparsers(dest="command")

    fetch = subparsers.add_parser("fetch", help="Fetch from all providers")
    fetch.add_argument("--limit", type=int, help="Items per provider")

    provider = subparsers.add_parser("provider", help="Fetch from one provider")
    provider.add_argument("provider_id")
    provider.add_argument("--limit", type=int, help="Number of items")
    provider.add_argument("--offset", type=int, default=0, help="Skip this many items")

    search = subparsers.add_parser("search", help="Search one provider")
    search.add_argument("provider_id")
    search.add_argument("query")
    search.add_argument("--limit", type=int, default=20)

    preview = subparsers.add_parser("preview", help="Show a link preview")
    preview.add_argument("url")

    subparsers.add_parser("providers", help="List providers and their status")
    subparsers.add_parser("cache-stats", help="Show cache statistics")
    subparsers.add_parser("cache-clear", help="Delete all cache entries")

    return parser


def main() -> None:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args()

    settings = AppSettings.load(args.config_dir)
    setup_logging(args.log_level or settings.log_level)
    use_cache = not args.no_cache

    if args.command == "fetch":
        exit_code = asyncio.run(cmd_fetch(settings, args.limit or settings.max_items, use_cache))
    elif args.command == "provider":
        exit_code = asyncio.run(
            cmd_provider(
                settings,
                args.provider_id,
                args.limit or settings.default_limit(args.provider_id),
                args.offset,
                use_cache,
            )
        )
    elif args.command == "search":
        exit_code = asyncio.run(
            cmd_search(settings, args.provider_id, args.query, args.limit, use_cache)
        )
    elif args.command == "preview":
        exit_code = asyncio.run(cmd_preview(settings, args.url, use_cache))
    elif args.command == "providers":
        exit_code = asyncio.run(cmd_providers(settings))
    elif args.command == "cache-stats":
        exit_code = asyncio.run(cmd_cache_stats(settings))
    elif args.command == "cache-clear":
        exit_code = asyncio.run(cmd_cache_clear(settings))
    else:
        parser.print_help()
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
