"""
Service layer for newsdeck.

This module exports the feed service and the registry factory.
"""

from newsdeck.core.services.feeds import FeedService, build_registry

__all__ = ["FeedService", "build_registry"]
