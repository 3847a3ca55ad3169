"""Services for feed_normalizer."""

from .feed_discovery import discover_feed_url
from .feed_parser import (
    parse_feed,
    parse_feed_bytes,
    parse_feed_file,
    parse_feed_string,
)
from .fetcher import fetch_feed

__all__ = [
    "discover_feed_url",
    "fetch_feed",
    "parse_feed",
    "parse_feed_bytes",
    "parse_feed_file",
    "parse_feed_string",
]
