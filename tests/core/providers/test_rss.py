"""Tests for the generic RSS provider."""

import hashlib
from unittest.mock import AsyncMock, patch

import pytest

from newsdeck.core.providers.rss import SUMMARY_MAX_CHARS, RssProvider

BLOG_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Example Blog</title>
    <item>
      <title>First post</title>
      <link>https://blog.example.com/first</link>
      <guid>https://blog.example.com/?p=1</guid>
      <author>editor@example.com (Editor)</author>
      <category>python</category>
      <pubDate>Sat, 01 Jun 2024 10:00:00 GMT</pubDate>
      <description>&lt;p&gt;Short &lt;em&gt;intro&lt;/em&gt;&lt;/p&gt;</description>
    </item>
    <item>
      <title>Long post</title>
      <link>https://blog.example.com/long</link>
      <guid>https://blog.example.com/?p=2</guid>
      <description>{long}</description>
    </item>
  </channel>
</rss>""".replace("{long}", "lorem " * 200)


class TestIdentity:
    def test_defaults_from_host(self):
        provider = RssProvider("https://blog.example.com/feed.xml")
        assert provider.id == "rss:blog.example.com"
        assert provider.name == "blog.example.com"

    def test_explicit_name_and_id(self):
        provider = RssProvider("https://x.test/rss", name="X", provider_id="x")
        assert (provider.id, provider.name) == ("x", "X")


class TestFetchItems:
    @pytest.mark.asyncio
    async def test_converts_entries(self, make_result):
        provider = RssProvider("https://blog.example.com/feed.xml", name="Example")
        with patch.object(provider.fetcher, "fetch", new_callable=AsyncMock) as mock_fetch:
            mock_fetch.return_value = make_result(text=BLOG_FEED)
            items = await provider.fetch_items(10)

        first = items[0]
        guid = "https://blog.example.com/?p=1"
        assert first.id == hashlib.sha256(guid.encode()).hexdigest()[:16]
        assert first.metadata.extra == {"guid": guid}
        assert first.provider_id == "rss:blog.example.com"
        assert first.source == "Example"
        assert first.title == "First post"
        assert first.url == "https://blog.example.com/first"
        assert first.summary == "Short intro"
        assert first.metadata.tags == ["python"]

    @pytest.mark.asyncio
    async def test_long_summary_truncated(self, make_result):
        provider = RssProvider("https://blog.example.com/feed.xml")
        with patch.object(provider.fetcher, "fetch", new_callable=AsyncMock) as mock_fetch:
            mock_fetch.return_value = make_result(text=BLOG_FEED)
            items = await provider.fetch_items(10)

        summary = items[1].summary
        assert len(summary) == SUMMARY_MAX_CHARS
        assert summary.endswith("...")

    @pytest.mark.asyncio
    async def test_limit(self, make_result):
        provider = RssProvider("https://blog.example.com/feed.xml")
        with patch.object(provider.fetcher, "fetch", new_callable=AsyncMock) as mock_fetch:
            mock_fetch.return_value = make_result(text=BLOG_FEED)
            items = await provider.fetch_items(1)

        assert [i.title for i in items] == ["First post"]
