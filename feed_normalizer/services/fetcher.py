"""Feed fetcher service.

This module downloads a feed over HTTP and normalizes it.
"""

import logging
from typing import Optional

import httpx

from feed_normalizer.config import ServerConfig, get_config
from feed_normalizer.exceptions import FeedFetchError
from feed_normalizer.models.schemas import Feed
from feed_normalizer.services.feed_parser import parse_feed_bytes


logger = logging.getLogger(__name__)


def http_client(config: ServerConfig) -> httpx.AsyncClient:
    """Create an HTTP client configured for feed requests."""
    return httpx.AsyncClient(
        follow_redirects=True,
        max_redirects=config.max_redirects,
        timeout=config.request_timeout,
        headers={"User-Agent": config.user_agent},
    )


async def fetch_feed(feed_url: str, config: Optional[ServerConfig] = None) -> Feed:
    """Fetch an RSS/Atom feed and parse it.

    The response body is handed to the parser as raw bytes so the
    document's own encoding declaration decides how it is decoded.

    Args:
        feed_url: URL of the feed to fetch
        config: Optional configuration (defaults to the global one)

    Returns:
        Parsed Feed

    Raises:
        FeedFetchError: If the HTTP request fails
        FeedParseError: If the response is not a parseable feed
    """
    if config is None:
        config = get_config()

    logger.info(f"Fetching feed: {feed_url}")

    async with http_client(config) as client:
        try:
            response = await client.get(feed_url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Failed to fetch feed: {e}")
            raise FeedFetchError(f"Failed to fetch {feed_url}: {e}") from e

    feed = parse_feed_bytes(response.content)

    logger.info(f"Parsed {len(feed.items)} items from feed")
    return feed
