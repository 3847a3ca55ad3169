"""Exceptions raised by feed_normalizer."""


class FeedParseError(Exception):
    """Raised when a feed document cannot be turned into a Feed."""


class MalformedFeedError(FeedParseError):
    """Raised when the XML tokenizer cannot recover from broken markup."""


class FeedDecodingError(FeedParseError):
    """Raised when the document's character set is unknown or the bytes do not decode."""


class FeedReadError(FeedParseError):
    """Raised when the input stream fails while it is being read."""


class FeedFetchError(FeedParseError):
    """Raised when a feed cannot be fetched over HTTP."""
