"""Tests for the Fetcher primitive."""

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from newsdeck.core.primitives.fetcher import (
    ContentType,
    Fetcher,
    FetcherConfig,
    FetchError,
)


def _fetcher_with(handler, **config) -> Fetcher:
    """Fetcher whose client is served by an httpx mock transport."""
    fetcher = Fetcher(FetcherConfig(retry_delay=0, **config))
    fetcher._client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return fetcher


class TestFetcherConfig:
    def test_defaults(self):
        config = FetcherConfig()
        assert config.timeout == 30.0
        assert config.connect_timeout == 10.0
        assert config.max_retries == 3


class TestFetch:
    """Tests for Fetcher.fetch."""

    @pytest.mark.asyncio
    async def test_json_response(self):
        """JSON bodies are detected and decodable."""
        fetcher = _fetcher_with(lambda request: httpx.Response(200, json={"ok": True}))

        result = await fetcher.fetch("https://api.example.com/x")

        assert result.ok
        assert result.content_type == ContentType.JSON
        assert result.json() == {"ok": True}
        await fetcher.aclose()

    @pytest.mark.asyncio
    async def test_sends_params_and_user_agent(self):
        """Query params and the configured User-Agent reach the server."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["ua"] = request.headers["User-Agent"]
            seen["q"] = request.url.params.get("q")
            return httpx.Response(200, text="ok", headers={"content-type": "text/plain"})

        fetcher = _fetcher_with(handler, user_agent="tester/1.0")
        await fetcher.fetch("https://example.com/search", params={"q": "rust"})

        assert seen == {"ua": "tester/1.0", "q": "rust"}
        await fetcher.aclose()

    @pytest.mark.asyncio
    async def test_http_error_status_is_returned(self):
        """Non-2xx responses are results, not exceptions."""
        fetcher = _fetcher_with(lambda request: httpx.Response(503, text="down"))

        result = await fetcher.fetch("https://example.com/")

        assert result.status_code == 503
        assert not result.ok
        await fetcher.aclose()

    @pytest.mark.asyncio
    async def test_retries_then_raises(self):
        """Connection failures are retried, then surface as FetchError."""
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            raise httpx.ConnectError("refused", request=request)

        fetcher = _fetcher_with(handler, max_retries=3)

        with patch("newsdeck.core.primitives.fetcher.asyncio.sleep", new_callable=AsyncMock):
            with pytest.raises(FetchError):
                await fetcher.fetch("https://example.com/")

        assert len(calls) == 3
        await fetcher.aclose()

    @pytest.mark.asyncio
    async def test_recovers_after_timeout(self):
        """A timeout followed by success returns the successful response."""
        attempts = {"n": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            attempts["n"] += 1
            if attempts["n"] == 1:
                raise httpx.ReadTimeout("slow", request=request)
            return httpx.Response(200, text="<html></html>", headers={"content-type": "text/html"})

        fetcher = _fetcher_with(handler, max_retries=2)
        result = await fetcher.fetch("https://example.com/")

        assert result.ok
        assert result.content_type == ContentType.HTML
        await fetcher.aclose()

    @pytest.mark.asyncio
    async def test_invalid_json_raises_value_error(self):
        fetcher = _fetcher_with(
            lambda request: httpx.Response(200, text="{oops", headers={"content-type": "application/json"})
        )
        result = await fetcher.fetch("https://example.com/")

        with pytest.raises(ValueError):
            result.json()
        await fetcher.aclose()
