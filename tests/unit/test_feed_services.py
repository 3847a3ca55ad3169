"""Unit tests for feed services.

Tests for feed discovery and HTTP feed fetching.
"""

import httpx
import pytest
from unittest.mock import AsyncMock, patch, MagicMock

from feed_normalizer.config import ServerConfig
from feed_normalizer.exceptions import FeedFetchError, MalformedFeedError
from feed_normalizer.services.feed_discovery import discover_feed_url, normalize_url
from feed_normalizer.services.fetcher import fetch_feed


# Mark all tests as async
pytestmark = pytest.mark.anyio


RSS_FEED = """<?xml version="1.0"?>
<rss version="2.0">
    <channel>
        <title>Test Blog</title>
        <item><title>Post 1</title><link>https://example.com/post1</link></item>
    </channel>
</rss>
"""


def make_response(status_code=200, text="", content=None):
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    response.content = content if content is not None else text.encode("utf-8")
    response.raise_for_status = MagicMock()
    return response


def install_client(mock_client, get):
    mock_instance = AsyncMock()
    mock_instance.get = get
    mock_instance.__aenter__ = AsyncMock(return_value=mock_instance)
    mock_instance.__aexit__ = AsyncMock(return_value=None)
    mock_client.return_value = mock_instance
    return mock_instance


class TestFeedDiscovery:
    """Tests for feed URL discovery."""

    async def test_discover_feed_from_link_tag(self):
        """Test discovery via <link rel="alternate"> tag."""
        html = """
        <html>
        <head>
            <link rel="alternate" type="application/rss+xml" href="/feed.xml">
        </head>
        <body></body>
        </html>
        """

        mock_response_html = make_response(text=html)
        mock_response_feed = make_response(text=RSS_FEED)

        async def mock_get(url, **kwargs):
            if url.endswith("/feed.xml"):
                return mock_response_feed
            return mock_response_html

        with patch("feed_normalizer.services.feed_discovery.httpx.AsyncClient") as mock_client:
            install_client(mock_client, mock_get)

            result = await discover_feed_url("https://example.com")

            assert result == "https://example.com/feed.xml"

    async def test_discover_feed_via_path_probing(self):
        """Test discovery via common path probing when no link tag exists."""
        html = "<html><head></head><body></body></html>"

        mock_response_html = make_response(text=html)
        mock_response_feed = make_response(text=RSS_FEED)
        mock_response_404 = make_response(status_code=404)

        async def mock_get(url, **kwargs):
            if url == "https://example.com":
                return mock_response_html
            elif url == "https://example.com/feed":
                return mock_response_feed
            return mock_response_404

        with patch("feed_normalizer.services.feed_discovery.httpx.AsyncClient") as mock_client:
            install_client(mock_client, mock_get)

            result = await discover_feed_url("https://example.com")

            assert result == "https://example.com/feed"

    async def test_discover_skips_invalid_candidates(self):
        """Test that candidates that do not parse as feeds are rejected."""
        html = """
        <html><head>
            <link rel="alternate" type="application/atom+xml" href="https://example.com/broken.xml">
        </head></html>
        """

        mock_response_html = make_response(text=html)
        mock_response_broken = make_response(text="not a feed at all")
        mock_response_feed = make_response(text=RSS_FEED)
        mock_response_404 = make_response(status_code=404)

        async def mock_get(url, **kwargs):
            if url == "https://example.com":
                return mock_response_html
            if url.endswith("/broken.xml"):
                return mock_response_broken
            if url == "https://example.com/rss.xml":
                return mock_response_feed
            return mock_response_404

        with patch("feed_normalizer.services.feed_discovery.httpx.AsyncClient") as mock_client:
            install_client(mock_client, mock_get)

            result = await discover_feed_url("https://example.com")

            assert result == "https://example.com/rss.xml"

    async def test_discover_feed_none_found(self):
        """Test returns None when no feed is found."""
        html = "<html><head></head><body></body></html>"

        mock_response_html = make_response(text=html)
        mock_response_404 = make_response(status_code=404)

        async def mock_get(url, **kwargs):
            if url == "https://example.com":
                return mock_response_html
            return mock_response_404

        with patch("feed_normalizer.services.feed_discovery.httpx.AsyncClient") as mock_client:
            install_client(mock_client, mock_get)

            result = await discover_feed_url("https://example.com")

            assert result is None

    async def test_discover_homepage_error_still_probes(self):
        """Test that a failing homepage falls through to path probing."""
        mock_response_feed = make_response(text=RSS_FEED)
        mock_response_404 = make_response(status_code=404)

        async def mock_get(url, **kwargs):
            if url == "https://example.com":
                raise httpx.ConnectError("Connection failed")
            if url == "https://example.com/atom.xml":
                return mock_response_feed
            return mock_response_404

        with patch("feed_normalizer.services.feed_discovery.httpx.AsyncClient") as mock_client:
            install_client(mock_client, mock_get)

            result = await discover_feed_url("https://example.com")

            assert result == "https://example.com/atom.xml"

    async def test_discover_adds_https_if_missing(self):
        """Test that https:// is added if protocol is missing."""
        mock_response = make_response(text="<html><head></head><body></body></html>")
        mock_response_404 = make_response(status_code=404)

        captured_urls = []

        async def mock_get(url, **kwargs):
            captured_urls.append(url)
            if "example.com" in url and "/" not in url.replace("https://", "").replace("http://", ""):
                return mock_response
            return mock_response_404

        with patch("feed_normalizer.services.feed_discovery.httpx.AsyncClient") as mock_client:
            install_client(mock_client, mock_get)

            await discover_feed_url("example.com")

            # First URL should have https://
            assert captured_urls[0] == "https://example.com"

    def test_normalize_url(self):
        assert normalize_url("example.com") == "https://example.com"
        assert normalize_url("http://example.com") == "http://example.com"


class TestFeedFetcher:
    """Tests for fetching feeds over HTTP."""

    async def test_fetch_rss_feed(self):
        """Test fetching and parsing an RSS 2.0 feed."""
        mock_response = make_response(text=RSS_FEED)

        with patch("feed_normalizer.services.fetcher.httpx.AsyncClient") as mock_client:
            install_client(mock_client, AsyncMock(return_value=mock_response))

            feed = await fetch_feed("https://example.com/feed.xml")

            assert feed.title == "Test Blog"
            assert len(feed.items) == 1
            assert feed.items[0].link == "https://example.com/post1"
            assert feed.items[0].id == "https://example.com/post1"

    async def test_fetch_uses_config(self):
        """Test that timeout and User-Agent come from the configuration."""
        mock_response = make_response(text=RSS_FEED)
        config = ServerConfig(user_agent="TestAgent/2.0", request_timeout=5.0)

        with patch("feed_normalizer.services.fetcher.httpx.AsyncClient") as mock_client:
            install_client(mock_client, AsyncMock(return_value=mock_response))

            await fetch_feed("https://example.com/feed.xml", config)

            kwargs = mock_client.call_args.kwargs
            assert kwargs["headers"]["User-Agent"] == "TestAgent/2.0"
            assert kwargs["timeout"] == 5.0
            assert kwargs["follow_redirects"] is True

    async def test_fetch_decodes_declared_charset(self):
        """Test that the body is parsed as bytes so the declaration applies."""
        doc = '<?xml version="1.0" encoding="windows-1252"?><rss><channel><title>Café €</title></channel></rss>'
        mock_response = make_response(content=doc.encode("cp1252"))

        with patch("feed_normalizer.services.fetcher.httpx.AsyncClient") as mock_client:
            install_client(mock_client, AsyncMock(return_value=mock_response))

            feed = await fetch_feed("https://example.com/feed.xml")

            assert feed.title == "Café €"

    async def test_fetch_http_error(self):
        """Test handling of HTTP errors."""
        with patch("feed_normalizer.services.fetcher.httpx.AsyncClient") as mock_client:
            install_client(mock_client, AsyncMock(side_effect=httpx.HTTPError("Connection failed")))

            with pytest.raises(FeedFetchError):
                await fetch_feed("https://example.com/feed.xml")

    async def test_fetch_bad_status(self):
        """Test that non-2xx responses are reported as fetch errors."""
        mock_response = make_response(status_code=500)
        mock_response.raise_for_status = MagicMock(
            side_effect=httpx.HTTPStatusError("Server error", request=MagicMock(), response=mock_response)
        )

        with patch("feed_normalizer.services.fetcher.httpx.AsyncClient") as mock_client:
            install_client(mock_client, AsyncMock(return_value=mock_response))

            with pytest.raises(FeedFetchError):
                await fetch_feed("https://example.com/feed.xml")

    async def test_fetch_malformed_body(self):
        """Test that an unparseable body propagates the parse error."""
        mock_response = make_response(text="")

        with patch("feed_normalizer.services.fetcher.httpx.AsyncClient") as mock_client:
            install_client(mock_client, AsyncMock(return_value=mock_response))

            with pytest.raises(MalformedFeedError):
                await fetch_feed("https://example.com/feed.xml")
