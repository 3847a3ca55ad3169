"""Feed normalizer MCP tools.

This module provides MCP tools that fetch, parse and discover RSS/Atom feeds
and return them in the unified feed shape.

NOTE: Never use Optional parameters in MCP tools - they break MCP clients.
Use empty string "" for optional strings and 0 for optional integers.
"""

import logging
from typing import Any, Dict

from mcp.server.fastmcp import Context

from feed_normalizer.exceptions import FeedParseError
from feed_normalizer.models.schemas import Feed
from feed_normalizer.services.feed_discovery import discover_feed_url, normalize_url
from feed_normalizer.services.feed_parser import parse_feed_string
from feed_normalizer.services.fetcher import fetch_feed


logger = logging.getLogger(__name__)


def _feed_result(feed: Feed, max_items: int) -> Dict[str, Any]:
    data = feed.to_dict()
    if max_items > 0:
        data["items"] = data["items"][:max_items]
    return {
        "success": True,
        "item_count": len(feed.items),
        "feed": data,
    }


async def parse_feed_url(
    url: str,
    max_items: int = 0,
    ctx: Context = None,
) -> Dict[str, Any]:
    """Fetch an RSS or Atom feed and return it in the unified feed shape.

    Args:
        url: Feed URL (normalized to https:// if no scheme)
        max_items: Return at most this many items (0 returns all)
        ctx: MCP Context object (injected automatically)

    Returns:
        Dictionary with:
        - success: bool
        - item_count: total number of items in the feed
        - feed: object with title, subtitle, link and items; each item has
          id, title, description, link, image, when, enclosure, media
        - error: string if success is False
    """
    logger.info(f"parse_feed_url called: url={url}")

    try:
        feed = await fetch_feed(normalize_url(url))
    except FeedParseError as e:
        return {
            "success": False,
            "error": str(e),
        }

    return _feed_result(feed, max_items)


async def parse_feed_xml(
    content: str,
    max_items: int = 0,
    ctx: Context = None,
) -> Dict[str, Any]:
    """Parse RSS or Atom XML passed in directly.

    Args:
        content: The feed document as text
        max_items: Return at most this many items (0 returns all)
        ctx: MCP Context object (injected automatically)

    Returns:
        Dictionary with:
        - success: bool
        - item_count: total number of items in the feed
        - feed: unified feed object (see parse_feed_url)
        - error: string if success is False
    """
    logger.info(f"parse_feed_xml called: {len(content)} characters")

    try:
        feed = parse_feed_string(content)
    except FeedParseError as e:
        return {
            "success": False,
            "error": str(e),
        }

    return _feed_result(feed, max_items)


async def discover_feed(url: str, ctx: Context = None) -> Dict[str, Any]:
    """Find the RSS/Atom feed URL advertised or hosted by a website.

    Looks for <link rel="alternate"> feed tags on the homepage first, then
    probes common feed paths such as /feed and /rss.xml.

    Args:
        url: Homepage URL of the site
        ctx: MCP Context object (injected automatically)

    Returns:
        Dictionary with:
        - success: bool
        - feed_url: discovered feed URL if success is True
        - error: string if no feed was found
    """
    logger.info(f"discover_feed called: url={url}")

    feed_url = await discover_feed_url(url)
    if not feed_url:
        return {
            "success": False,
            "error": f"Could not discover a feed for {normalize_url(url)}",
        }

    return {
        "success": True,
        "feed_url": feed_url,
    }


# List of feed tools for registration
feed_tools = [
    parse_feed_url,
    parse_feed_xml,
    discover_feed,
]
