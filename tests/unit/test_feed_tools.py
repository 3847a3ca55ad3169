"""Unit tests for the MCP feed tools, decorators and server wiring."""

import pytest
from unittest.mock import AsyncMock, patch

from feed_normalizer.config import ServerConfig
from feed_normalizer.decorators.exception_handler import exception_handler
from feed_normalizer.decorators.tool_logger import tool_logger
from feed_normalizer.exceptions import FeedFetchError
from feed_normalizer.models.schemas import Feed, FeedItem
from feed_normalizer.server.app import create_mcp_server
from feed_normalizer.tools.feed_tools import discover_feed, parse_feed_url, parse_feed_xml


pytestmark = pytest.mark.anyio


ATOM_FEED = """<feed xmlns="http://www.w3.org/2005/Atom">
    <title>Tool Feed</title>
    <entry><id>1</id><title>One</title><updated>2024-01-15T10:30:00Z</updated></entry>
    <entry><id>2</id><title>Two</title></entry>
    <entry><id>3</id><title>Three</title></entry>
</feed>
"""


class TestParseFeedXml:
    """Tests for the parse_feed_xml tool."""

    async def test_parse_xml(self):
        result = await parse_feed_xml(ATOM_FEED)

        assert result["success"] is True
        assert result["item_count"] == 3
        assert result["feed"]["title"] == "Tool Feed"
        assert [item["id"] for item in result["feed"]["items"]] == ["1", "2", "3"]
        assert result["feed"]["items"][0]["when"] == "2024-01-15T10:30:00+00:00"

    async def test_max_items(self):
        """Test that max_items trims the returned items but not the count."""
        result = await parse_feed_xml(ATOM_FEED, max_items=2)

        assert result["item_count"] == 3
        assert len(result["feed"]["items"]) == 2

    async def test_image_source_not_exposed(self):
        result = await parse_feed_xml(ATOM_FEED)
        assert "image_source" not in result["feed"]["items"][0]

    async def test_malformed_xml(self):
        result = await parse_feed_xml("")

        assert result["success"] is False
        assert "error" in result


class TestParseFeedUrl:
    """Tests for the parse_feed_url tool."""

    async def test_parse_url(self):
        feed = Feed(title="Remote", items=[FeedItem(id="a", link="a")])

        with patch("feed_normalizer.tools.feed_tools.fetch_feed", AsyncMock(return_value=feed)) as mock_fetch:
            result = await parse_feed_url("example.com/feed.xml")

            mock_fetch.assert_awaited_once_with("https://example.com/feed.xml")
            assert result["success"] is True
            assert result["feed"]["title"] == "Remote"
            assert result["item_count"] == 1

    async def test_fetch_error(self):
        with patch(
            "feed_normalizer.tools.feed_tools.fetch_feed",
            AsyncMock(side_effect=FeedFetchError("Failed to fetch")),
        ):
            result = await parse_feed_url("https://example.com/feed.xml")

            assert result == {"success": False, "error": "Failed to fetch"}


class TestDiscoverFeed:
    """Tests for the discover_feed tool."""

    async def test_found(self):
        with patch(
            "feed_normalizer.tools.feed_tools.discover_feed_url",
            AsyncMock(return_value="https://example.com/feed"),
        ):
            result = await discover_feed("example.com")

            assert result == {"success": True, "feed_url": "https://example.com/feed"}

    async def test_not_found(self):
        with patch("feed_normalizer.tools.feed_tools.discover_feed_url", AsyncMock(return_value=None)):
            result = await discover_feed("example.com")

            assert result["success"] is False
            assert "https://example.com" in result["error"]


class TestDecorators:
    """Tests for the tool decorator chain."""

    async def test_exception_handler_converts_errors(self):
        async def broken_tool(value: str):
            raise RuntimeError(f"bad {value}")

        result = await exception_handler(broken_tool)(value="input")

        assert result == {"success": False, "error": "bad input", "error_type": "RuntimeError"}

    async def test_decorators_preserve_result_and_name(self):
        async def good_tool(value: str):
            return {"success": True, "value": value}

        decorated = exception_handler(tool_logger(good_tool, {"name": "test"}))

        assert decorated.__name__ == "good_tool"
        assert await decorated(value="x") == {"success": True, "value": "x"}


class TestServer:
    """Tests for MCP server creation."""

    async def test_all_tools_registered(self):
        server = create_mcp_server(ServerConfig(name="test-server"))
        tools = await server.list_tools()

        assert {tool.name for tool in tools} == {"parse_feed_url", "parse_feed_xml", "discover_feed"}

    async def test_context_not_in_tool_schemas(self):
        """Test that the injected MCP context is hidden from clients."""
        server = create_mcp_server(ServerConfig(name="test-server"))
        tools = await server.list_tools()

        for tool in tools:
            properties = tool.inputSchema.get("properties", {})
            assert "ctx" not in properties
            assert "kwargs" not in properties
