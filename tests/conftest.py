"""
Shared test fixtures.

HTTP is stubbed at the Fetcher.fetch boundary: tests build FetchResult
objects with make_result and hand them to an AsyncMock.
"""

import json
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from newsdeck.core.models import FeedItem, FeedItemMetadata
from newsdeck.core.primitives.fetcher import ContentType, FetchResult

BASE_TIME = datetime(2024, 6, 1, 12, 0, 0, tzinfo=UTC)


def _build_result(
    url: str = "https://example.com/",
    status_code: int = 200,
    json_body: Any = None,
    text: str | None = None,
    content_type: ContentType | None = None,
) -> FetchResult:
    if json_body is not None:
        text = json.dumps(json_body)
        content_type = content_type or ContentType.JSON
    text = text if text is not None else ""
    return FetchResult(
        url=url,
        status_code=status_code,
        content_type=content_type or ContentType.TEXT,
        content=text.encode(),
        text=text,
        headers={},
        fetched_at=datetime.now(),
        elapsed_ms=1,
    )


@pytest.fixture
def make_result() -> Callable[..., FetchResult]:
    """Factory for FetchResult objects."""
    return _build_result


@pytest.fixture
def make_item() -> Callable[..., FeedItem]:
    """Factory for FeedItems published `minutes_ago` before BASE_TIME."""

    def _make(
        item_id: str = "1",
        provider_id: str = "test",
        minutes_ago: int = 0,
        title: str | None = None,
        **metadata: Any,
    ) -> FeedItem:
        return FeedItem(
            id=item_id,
            provider_id=provider_id,
            title=title or f"Item {item_id}",
            source="Test",
            published_at=BASE_TIME - timedelta(minutes=minutes_ago),
            metadata=FeedItemMetadata(**metadata),
        )

    return _make


@pytest.fixture
def base_time() -> datetime:
    return BASE_TIME
