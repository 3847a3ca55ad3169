"""Feed discovery service.

This module discovers RSS/Atom feed URLs from a website homepage.
"""

import logging
from typing import Optional

import httpx
from bs4 import BeautifulSoup

from feed_normalizer.config import ServerConfig, get_config
from feed_normalizer.exceptions import FeedParseError
from feed_normalizer.services.feed_parser import parse_feed_bytes
from feed_normalizer.services.fetcher import http_client


logger = logging.getLogger(__name__)


# Common feed paths to probe
COMMON_FEED_PATHS = [
    "/feed",
    "/rss",
    "/feed.xml",
    "/rss.xml",
    "/atom.xml",
    "/index.xml",
    "/feeds/posts/default",  # Blogger
    "/feed/",
    "/rss/",
    "/?feed=rss2",  # WordPress
    "/blog/feed",
    "/blog/rss",
]

# Feed MIME types to look for in <link> tags
FEED_MIME_TYPES = [
    "application/rss+xml",
    "application/atom+xml",
    "application/xml",
    "text/xml",
]


def normalize_url(url: str) -> str:
    """Add https:// to URLs given without a scheme."""
    if not url.startswith(("http://", "https://")):
        return "https://" + url
    return url


async def discover_feed_url(url: str, config: Optional[ServerConfig] = None) -> Optional[str]:
    """Discover the RSS/Atom feed URL for a website.

    1. Fetches the homepage HTML
    2. Looks for <link rel="alternate"> with feed MIME types
    3. If not found, probes common feed paths
    4. Validates candidates by parsing them as feeds

    Args:
        url: Homepage URL of the site
        config: Optional configuration (defaults to the global one)

    Returns:
        Feed URL if found and valid, None otherwise
    """
    if config is None:
        config = get_config()

    logger.info(f"Discovering feed URL for: {url}")

    url = normalize_url(url)

    # Remove trailing slash for consistent path joining
    base_url = url.rstrip("/")

    async with http_client(config) as client:
        # Step 1: Fetch homepage and look for <link> tags
        try:
            response = await client.get(url)
            response.raise_for_status()

            soup = BeautifulSoup(response.text, "lxml")

            for link in soup.find_all("link", rel=lambda x: x and "alternate" in x):
                link_type = link.get("type", "").lower()
                href = link.get("href", "")

                if any(mime in link_type for mime in FEED_MIME_TYPES) and href:
                    # Resolve relative URLs
                    if href.startswith("/"):
                        feed_url = base_url + href
                    elif href.startswith("http"):
                        feed_url = href
                    else:
                        feed_url = base_url + "/" + href

                    if await _validate_feed(client, feed_url):
                        logger.info(f"Found feed via link tag: {feed_url}")
                        return feed_url

        except httpx.HTTPError as e:
            logger.warning(f"Failed to fetch homepage: {e}")

        # Step 2: Probe common feed paths
        for path in COMMON_FEED_PATHS:
            feed_url = base_url + path
            if await _validate_feed(client, feed_url):
                logger.info(f"Found feed via path probing: {feed_url}")
                return feed_url

    logger.info(f"No feed found for: {url}")
    return None


async def _validate_feed(client: httpx.AsyncClient, feed_url: str) -> bool:
    """Validate that a URL returns a usable RSS/Atom feed.

    Args:
        client: HTTP client
        feed_url: URL to validate

    Returns:
        True if the URL parses to a feed with a title or at least one item
    """
    try:
        response = await client.get(feed_url)
        if response.status_code != 200:
            return False

        feed = parse_feed_bytes(response.content)
    except (httpx.HTTPError, FeedParseError) as e:
        logger.debug(f"Rejected feed candidate {feed_url}: {e}")
        return False

    return bool(feed.title or feed.items)
