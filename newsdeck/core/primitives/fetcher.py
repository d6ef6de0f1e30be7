"""
Fetcher primitive — downloads content from URLs.

This is an atomic primitive that does ONE thing:
fetch content from a URL and return it in a structured way.
Every request is bounded by a connect timeout and a total timeout.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class ContentType(StrEnum):
    """Detected content type."""
    HTML = "html"
    JSON = "json"
    XML = "xml"
    PDF = "pdf"
    TEXT = "text"
    BINARY = "binary"
    UNKNOWN = "unknown"


class FetchError(Exception):
    """Request could not be completed (timeout, connection failure)."""

    def __init__(self, url: str, message: str):
        super().__init__(f"{url}: {message}")
        self.url = url


@dataclass
class FetchResult:
    """Result of fetching a URL."""
    url: str
    status_code: int
    content_type: ContentType
    content: bytes
    text: str | None
    headers: dict[str, str]
    fetched_at: datetime
    elapsed_ms: int
    encoding: str | None = None
    content_length: int | None = None

    @property
    def ok(self) -> bool:
        """True if request was successful (2xx status)."""
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        """Decode the body as JSON. Raises ValueError on malformed input."""
        return json.loads(self.text if self.text is not None else self.content)


@dataclass
class FetcherConfig:
    """Configuration for Fetcher."""
    timeout: float = 30.0
    connect_timeout: float = 10.0
    max_retries: int = 3
    retry_delay: float = 1.0
    user_agent: str = "newsdeck/0.1 (+https://github.com/newsdeck/newsdeck)"
    extra_headers: dict[str, str] = field(default_factory=dict)
    follow_redirects: bool = True
    verify_ssl: bool = True


class Fetcher:
    """
    Fetches content from URLs.

    Usage:
        fetcher = Fetcher(FetcherConfig(timeout=10.0, connect_timeout=5.0))
        result = await fetcher.fetch("https://example.com", params={"q": "rust"})

        if result.ok:
            print(result.text)

        await fetcher.aclose()
    """

    def __init__(self, config: FetcherConfig | None = None):
        self.config = config or FetcherConfig()
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        """Get the shared client, creating it on first use."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(
                    self.config.timeout,
                    connect=self.config.connect_timeout,
                ),
                follow_redirects=self.config.follow_redirects,
                verify=self.config.verify_ssl,
            )
        return self._client

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def fetch(self, url: str, **kwargs: Any) -> FetchResult:
        """
        Fetch content from URL.

        Keyword Args:
            params: Query parameters.
            headers: Extra request headers.
            timeout: Override the total timeout for this request.

        Raises:
            FetchError: All attempts timed out or failed to connect.
        """
        headers = {
            "User-Agent": self.config.user_agent,
            **self.config.extra_headers,
            **kwargs.get("headers", {}),
        }
        request_kwargs: dict[str, Any] = {"headers": headers}
        if kwargs.get("params"):
            request_kwargs["params"] = kwargs["params"]
        if "timeout" in kwargs:
            request_kwargs["timeout"] = httpx.Timeout(
                kwargs["timeout"], connect=self.config.connect_timeout
            )

        client = self._get_client()
        start_time = datetime.now()
        attempts = max(1, self.config.max_retries)
        last_error: Exception | None = None

        for attempt in range(attempts):
            try:
                response = await client.get(url, **request_kwargs)

                elapsed_ms = int((datetime.now() - start_time).total_seconds() * 1000)
                content_type = self._detect_content_type(response)

                text = None
                if content_type not in (ContentType.PDF, ContentType.BINARY):
                    try:
                        text = response.text
                    except (UnicodeDecodeError, LookupError):
                        pass

                return FetchResult(
                    url=str(response.url),
                    status_code=response.status_code,
                    content_type=content_type,
                    content=response.content,
                    text=text,
                    headers=dict(response.headers),
                    fetched_at=datetime.now(),
                    elapsed_ms=elapsed_ms,
                    encoding=response.encoding,
                    content_length=len(response.content),
                )

            except httpx.TimeoutException as e:
                last_error = e
                logger.warning(f"Timeout fetching {url}, attempt {attempt + 1}")

            except httpx.RequestError as e:
                last_error = e
                logger.warning(f"Error fetching {url}: {e}, attempt {attempt + 1}")

            if attempt < attempts - 1:
                await asyncio.sleep(self.config.retry_delay * (attempt + 1))

        raise FetchError(
            url, f"failed after {attempts} attempts: {last_error}"
        ) from last_error

    def _detect_content_type(self, response: httpx.Response) -> ContentType:
        """Detect content type from response headers."""
        content_type_header = response.headers.get("content-type", "").lower()

        if "json" in content_type_header:
            return ContentType.JSON
        elif "text/html" in content_type_header:
            return ContentType.HTML
        elif "xml" in content_type_header:
            return ContentType.XML
        elif "application/pdf" in content_type_header:
            return ContentType.PDF
        elif "text/" in content_type_header:
            return ContentType.TEXT
        elif content_type_header.startswith(("image/", "audio/", "video/")):
            return ContentType.BINARY
        else:
            content = response.content[:100]
            if content.startswith(b"%PDF"):
                return ContentType.PDF
            elif b"<!DOCTYPE html" in content or b"<html" in content:
                return ContentType.HTML
            elif content.startswith(b"<?xml"):
                return ContentType.XML
            elif content.lstrip()[:1] in (b"{", b"["):
                return ContentType.JSON

            return ContentType.UNKNOWN
