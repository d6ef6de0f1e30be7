"""Tests for ArxivProvider."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, patch

import pytest

from newsdeck.core.providers.arxiv import ArxivCategory, ArxivProvider
from newsdeck.core.providers.exceptions import ParseError

ARXIV_RSS = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:dc="http://purl.org/dc/elements/1.1/">
  <channel>
    <title>cs.AI updates on arXiv.org</title>
    <item>
      <title>Attention Is
        Still All You Need</title>
      <link>https://arxiv.org/abs/2406.00001</link>
      <description>&lt;p&gt;We revisit attention.&lt;/p&gt;</description>
      <guid isPermaLink="false">oai:arXiv.org:2406.00001v1</guid>
      <dc:creator>A. Author, B. Author</dc:creator>
      <pubDate>Mon, 03 Jun 2024 00:00:00 -0400</pubDate>
    </item>
    <item>
      <title>Second Paper</title>
      <link>https://arxiv.org/abs/2406.00002</link>
      <description>Abstract two.</description>
      <pubDate>Mon, 03 Jun 2024 00:00:00 -0400</pubDate>
    </item>
  </channel>
</rss>"""


class TestArxivCategory:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("cs.ai", ArxivCategory.CS_AI),
            ("ML", ArxivCategory.CS_LG),
            ("nlp", ArxivCategory.CS_CL),
            ("statistics", ArxivCategory.STAT),
            ("astro", ArxivCategory.CS),
            (None, ArxivCategory.CS),
        ],
    )
    def test_from_str(self, value, expected):
        assert ArxivCategory.from_str(value) is expected

    def test_rss_path_and_display(self):
        assert ArxivCategory.CS_LG.rss_path == "cs.LG"
        assert ArxivCategory.CS_LG.display_name == "Machine Learning"


class TestFetchItems:
    """Tests for RSS fetching and conversion."""

    @pytest.mark.asyncio
    async def test_converts_entries(self, make_result):
        provider = ArxivProvider(category="ai")
        with patch.object(provider.fetcher, "fetch", new_callable=AsyncMock) as mock_fetch:
            mock_fetch.return_value = make_result(text=ARXIV_RSS)
            items = await provider.fetch_items(10)

        assert mock_fetch.call_args.args[0] == "https://rss.arxiv.org/rss/cs.AI"
        assert len(items) == 2
        paper = items[0]
        assert paper.id == "2406.00001"
        assert paper.title == "Attention Is Still All You Need"
        assert paper.source == "arXiv:AI"
        assert paper.url == "https://arxiv.org/abs/2406.00001"
        assert paper.summary == "We revisit attention."
        assert paper.metadata.tags == ["AI", "paper"]
        assert paper.published_at == datetime(2024, 6, 3, 4, 0, tzinfo=UTC)

    @pytest.mark.asyncio
    async def test_truncates_to_limit(self, make_result):
        provider = ArxivProvider()
        with patch.object(provider.fetcher, "fetch", new_callable=AsyncMock) as mock_fetch:
            mock_fetch.return_value = make_result(text=ARXIV_RSS)
            items = await provider.fetch_items(1)

        assert [i.id for i in items] == ["2406.00001"]

    @pytest.mark.asyncio
    async def test_malformed_feed(self, make_result):
        provider = ArxivProvider()
        with patch.object(provider.fetcher, "fetch", new_callable=AsyncMock) as mock_fetch:
            mock_fetch.return_value = make_result(text="Service Unavailable")
            with pytest.raises(ParseError):
                await provider.fetch_items(5)

    def test_set_category(self):
        provider = ArxivProvider()
        provider.set_category("math")
        assert provider.category is ArxivCategory.MATH
