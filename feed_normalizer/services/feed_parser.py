"""Feed parser service.

This module assembles a Feed from the structural events of an RSS or Atom
document. It is a single forward pass over the event stream: the parser
state records which dialect the document uses, whether an item is open and
which element was opened last, and every event updates the Feed (or the
item being built) in place.

Missing or malformed elements, attributes and dates never raise. The only
errors are the ones the tokenizer raises for a stream it cannot read.
"""

import io
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Tuple, Union

from feed_normalizer.exceptions import FeedReadError
from feed_normalizer.models.schemas import Feed, FeedItem, Media
from feed_normalizer.services.dates import parse_atom_date, parse_rss_date
from feed_normalizer.services.tokenizer import (
    Attribute,
    CharData,
    EndElement,
    Event,
    StartElement,
    iter_events,
)


logger = logging.getLogger(__name__)

ATOM_NS = "http://www.w3.org/2005/atom"
MEDIA_NS = "http://search.yahoo.com/mrss/"
YOUTUBE_NS = "http://gdata.youtube.com/schemas/2007"

TITLE = "title"
LINK = "link"

RSS_CHANNEL = "channel"
RSS_ITEM = "item"
RSS_GUID = "guid"
RSS_DESCRIPTION = "description"
RSS_PUB_DATE = "pubdate"
RSS_ENCLOSURE = "enclosure"

ATOM_FEED = "feed"
ATOM_ENTRY = "entry"
ATOM_ID = "id"
ATOM_SUBTITLE = "subtitle"
ATOM_SUMMARY = "summary"
ATOM_UPDATED = "updated"

MEDIA_CONTENT = "content"
MEDIA_THUMBNAIL = "thumbnail"

# YouTube thumbnail variants, best first. "default " keeps the trailing
# space it has always been compared with, so plain "default" never ranks.
THUMB_SD = "sddefault"
THUMB_HQ = "hqdefault"
THUMB_MQ = "mqdefault"
THUMB_DEFAULT = "default "


class Dialect(Enum):
    RSS = "rss"
    ATOM = "atom"


class Level(Enum):
    FEED = "feed"
    POST = "post"


ENTRY_TAGS = {Dialect.RSS: RSS_ITEM, Dialect.ATOM: ATOM_ENTRY}


@dataclass
class ParserState:
    """Mutable parse context, owned by a single parse call."""

    dialect: Dialect = Dialect.RSS
    level: Level = Level.FEED
    tag: str = ""
    namespace: str = ""
    element: Optional[StartElement] = None
    link_resolved: bool = False
    feed: Feed = field(default_factory=Feed)
    item: FeedItem = field(default_factory=FeedItem)


def _first_attr(attributes: List[Attribute], name: str) -> Optional[str]:
    """Value of the first attribute whose local name matches, if any."""
    for attr in attributes:
        if attr.name.lower() == name:
            return attr.value
    return None


def _is_alternate(attr: Attribute) -> bool:
    return attr.name.lower() == "rel" and attr.value == "alternate"


def should_replace_thumbnail(item: FeedItem, url: str, name: str) -> bool:
    """Decide whether a thumbnail candidate beats the item's current image.

    Ranking is sddefault > hqdefault > mqdefault > "default ". Among equals
    the first one seen is kept; unknown names only fill an empty slot.
    """
    if not url:
        return False
    if not item.image:
        return True
    if name == THUMB_SD:
        return True
    if name == THUMB_HQ:
        return item.image_source != THUMB_SD
    if name == THUMB_MQ:
        return item.image_source not in (THUMB_SD, THUMB_HQ)
    if name == THUMB_DEFAULT:
        return item.image_source not in (THUMB_MQ, THUMB_SD, THUMB_HQ)
    return False


# Element open handlers


def _open_item(state: ParserState, element: StartElement) -> None:
    state.level = Level.POST
    state.link_resolved = False
    state.item = FeedItem()


def _open_enclosure(state: ParserState, element: StartElement) -> None:
    url = _first_attr(element.attributes, "url")
    if url is None:
        return
    if not state.item.enclosure:
        state.item.enclosure = url
    state.item.media.append(Media(url=url))


def _open_atom_link(state: ParserState, element: StartElement) -> None:
    if state.level is Level.POST and state.link_resolved:
        return
    for attr in element.attributes:
        if attr.name.lower() == "href":
            if state.level is Level.FEED:
                state.feed.link = attr.value
            else:
                state.item.link = attr.value
        if state.level is Level.POST and _is_alternate(attr):
            state.link_resolved = True


def _open_media_content(state: ParserState, element: StartElement) -> None:
    if state.level is not Level.POST:
        return
    is_video = any(
        attr.name.lower() == "type" and attr.value.lower().startswith("video")
        for attr in element.attributes
    )
    if not is_video:
        return
    url = _first_attr(element.attributes, "url")
    if url is None:
        return
    media = Media(url=url)
    state.item.media.append(media)
    size = _first_attr(element.attributes, "filesize")
    if size is not None:
        media.size = size


def _open_media_thumbnail(state: ParserState, element: StartElement) -> None:
    url = name = ""
    for attr in element.attributes:
        local = attr.name.lower()
        if local == "url":
            url = attr.value
        elif local == "name" and attr.namespace.lower() == YOUTUBE_NS:
            name = attr.value
    if should_replace_thumbnail(state.item, url, name):
        state.item.image = url
        state.item.image_source = name


def _on_start(state: ParserState, element: StartElement) -> None:
    state.tag = element.name.lower()
    state.namespace = element.namespace.lower()
    state.element = element
    tag = state.tag

    if tag == ATOM_FEED:
        state.dialect = Dialect.ATOM
        state.level = Level.FEED
    elif tag == RSS_CHANNEL:
        state.dialect = Dialect.RSS
        state.level = Level.FEED
    elif tag == ENTRY_TAGS[state.dialect]:
        _open_item(state, element)
    elif tag == RSS_ENCLOSURE:
        _open_enclosure(state, element)
    elif tag == LINK and state.dialect is Dialect.ATOM:
        _open_atom_link(state, element)
    elif state.namespace == MEDIA_NS and tag == MEDIA_CONTENT:
        _open_media_content(state, element)
    elif state.namespace == MEDIA_NS and tag == MEDIA_THUMBNAIL:
        _open_media_thumbnail(state, element)


# Element close


def _on_end(state: ParserState, element: EndElement) -> None:
    if element.name.lower() not in (ATOM_ENTRY, RSS_ITEM):
        return
    item = state.item
    if not item.id:
        item.id = item.link
    state.feed.items.append(item)
    state.item = FeedItem()


# Character data handlers


def _set_feed_title(state: ParserState, text: str) -> None:
    if not state.feed.title:
        state.feed.title = text


def _set_feed_subtitle(state: ParserState, text: str) -> None:
    state.feed.subtitle = text


def _set_feed_link(state: ParserState, text: str) -> None:
    state.feed.link = text


def _set_item_id(state: ParserState, text: str) -> None:
    state.item.id = text


def _set_item_title(state: ParserState, text: str) -> None:
    # media:title and friends must not clobber the entry title
    if state.namespace in ("", ATOM_NS):
        state.item.title = text


def _set_item_description(state: ParserState, text: str) -> None:
    state.item.description = text


def _set_item_link(state: ParserState, text: str) -> None:
    if state.link_resolved:
        return
    if any(_is_alternate(attr) for attr in state.element.attributes):
        state.link_resolved = True
    state.item.link = text


def _set_item_updated(state: ParserState, text: str) -> None:
    state.item.when = parse_atom_date(text)


def _set_item_pub_date(state: ParserState, text: str) -> None:
    state.item.when = parse_rss_date(text)


TextHandler = Callable[[ParserState, str], None]

TEXT_HANDLERS: Dict[Tuple[Level, Dialect, str], TextHandler] = {
    (Level.FEED, Dialect.RSS, TITLE): _set_feed_title,
    (Level.FEED, Dialect.ATOM, TITLE): _set_feed_title,
    (Level.FEED, Dialect.RSS, RSS_DESCRIPTION): _set_feed_subtitle,
    (Level.FEED, Dialect.ATOM, ATOM_SUBTITLE): _set_feed_subtitle,
    (Level.FEED, Dialect.RSS, LINK): _set_feed_link,
    (Level.POST, Dialect.RSS, RSS_GUID): _set_item_id,
    (Level.POST, Dialect.ATOM, ATOM_ID): _set_item_id,
    (Level.POST, Dialect.RSS, TITLE): _set_item_title,
    (Level.POST, Dialect.ATOM, TITLE): _set_item_title,
    (Level.POST, Dialect.RSS, RSS_DESCRIPTION): _set_item_description,
    (Level.POST, Dialect.ATOM, ATOM_SUMMARY): _set_item_description,
    (Level.POST, Dialect.RSS, LINK): _set_item_link,
    (Level.POST, Dialect.ATOM, ATOM_UPDATED): _set_item_updated,
    (Level.POST, Dialect.RSS, RSS_PUB_DATE): _set_item_pub_date,
}


def _on_text(state: ParserState, chardata: CharData) -> None:
    text = chardata.text
    if not text.strip():
        return
    handler = TEXT_HANDLERS.get((state.level, state.dialect, state.tag))
    if handler:
        handler(state, text)


EVENT_HANDLERS = {
    StartElement: _on_start,
    EndElement: _on_end,
    CharData: _on_text,
}


def handle_event(state: ParserState, event: Event) -> ParserState:
    """Apply one structural event to the parser state.

    Args:
        state: Parser state to update in place
        event: StartElement, EndElement or CharData

    Returns:
        The same state, for chaining
    """
    EVENT_HANDLERS[type(event)](state, event)
    return state


def build_feed(events: Iterable[Event]) -> Feed:
    """Assemble a Feed from an already tokenized event sequence."""
    state = ParserState()
    for event in events:
        handle_event(state, event)
    return state.feed


def parse_feed(stream) -> Feed:
    """Parse an RSS/Atom document from an open stream.

    Args:
        stream: Readable binary or text stream. The caller keeps ownership;
            it is not closed.

    Returns:
        Feed with one FeedItem per closed item/entry element

    Raises:
        MalformedFeedError: If the markup cannot be recovered
        FeedDecodingError: If the character set is unknown or invalid
        FeedReadError: If reading the stream fails
    """
    feed = build_feed(iter_events(stream))
    logger.debug(f"Parsed feed '{feed.title}' with {len(feed.items)} items")
    return feed


def parse_feed_bytes(data: bytes) -> Feed:
    """Parse a feed document held in memory as bytes."""
    return parse_feed(io.BytesIO(data))


def parse_feed_string(text: str) -> Feed:
    """Parse a feed document held in memory as text."""
    return parse_feed(io.StringIO(text))


def parse_feed_file(path: Union[str, Path]) -> Feed:
    """Parse a feed document stored on disk.

    Raises:
        FeedReadError: If the file cannot be opened
    """
    try:
        stream = open(path, "rb")
    except OSError as e:
        raise FeedReadError(f"Failed to open {path}: {e}") from e
    with stream:
        return parse_feed(stream)
