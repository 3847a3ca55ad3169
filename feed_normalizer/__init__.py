"""feed_normalizer - unified parsing of RSS and Atom feeds."""

from feed_normalizer.exceptions import (
    FeedDecodingError,
    FeedFetchError,
    FeedParseError,
    FeedReadError,
    MalformedFeedError,
)
from feed_normalizer.models.schemas import Feed, FeedItem, Media
from feed_normalizer.services.feed_parser import (
    parse_feed,
    parse_feed_bytes,
    parse_feed_file,
    parse_feed_string,
)

__version__ = "1.0.0"

__all__ = [
    "Feed",
    "FeedItem",
    "Media",
    "parse_feed",
    "parse_feed_bytes",
    "parse_feed_file",
    "parse_feed_string",
    "FeedParseError",
    "MalformedFeedError",
    "FeedDecodingError",
    "FeedReadError",
    "FeedFetchError",
]
