"""Token stream adapter.

This module turns an open byte or text stream into a lazy sequence of
structural XML events using lxml's recovering parser in push mode. Only one
chunk of the document is held in memory at a time.
"""

import codecs
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Iterator, List, Tuple, Union

from bs4.dammit import EncodingDetector
from lxml import etree

from feed_normalizer.exceptions import FeedDecodingError, FeedReadError, MalformedFeedError


CHUNK_SIZE = 64 * 1024


@dataclass
class Attribute:
    """An element attribute, split into namespace URI and local name."""

    name: str
    value: str
    namespace: str = ""


@dataclass
class StartElement:
    name: str
    namespace: str = ""
    attributes: List[Attribute] = field(default_factory=list)


@dataclass
class EndElement:
    name: str
    namespace: str = ""


@dataclass
class CharData:
    text: str


Event = Union[StartElement, EndElement, CharData]
Converter = Callable[[bytes, bool], bytes]


def split_qname(qname: str) -> Tuple[str, str]:
    """Split an lxml qualified name into ``(namespace, local_name)``.

    lxml reports resolved names as ``{uri}local``. A prefix that was never
    declared is left in the name by the recovering parser; it is returned
    as the namespace so it cannot match a real namespace URI.
    """
    if qname.startswith("{"):
        namespace, _, local = qname[1:].partition("}")
        return namespace, local
    if ":" in qname:
        prefix, _, local = qname.partition(":")
        return prefix, local
    return "", qname


class _EventCollector:
    """Parser target that queues events until the reader drains them.

    lxml may report one run of text through several ``data`` calls (chunk
    boundaries, entity references, CDATA sections); they are joined into a
    single CharData event.
    """

    def __init__(self):
        self.events = deque()
        self.seen_root = False
        self._text: List[str] = []

    def start(self, tag, attrib):
        self._flush_text()
        self.seen_root = True
        namespace, name = split_qname(tag)
        attributes = []
        for key, value in attrib.items():
            attr_namespace, attr_name = split_qname(key)
            attributes.append(Attribute(name=attr_name, value=value, namespace=attr_namespace))
        self.events.append(StartElement(name=name, namespace=namespace, attributes=attributes))

    def end(self, tag):
        self._flush_text()
        namespace, name = split_qname(tag)
        self.events.append(EndElement(name=name, namespace=namespace))

    def data(self, data):
        self._text.append(data)

    def close(self):
        self._flush_text()

    def drain(self) -> Iterator[Event]:
        while self.events:
            yield self.events.popleft()

    def _flush_text(self):
        if self._text:
            self.events.append(CharData("".join(self._text)))
            self._text = []


def _read(stream, size: int):
    try:
        chunk = stream.read(size)
    except (OSError, ValueError) as e:
        raise FeedReadError(f"Failed to read feed stream: {e}") from e
    if chunk is None:
        return b""
    if isinstance(chunk, (bytearray, memoryview)):
        return bytes(chunk)
    return chunk


def _utf8_checker() -> Converter:
    decode = codecs.getincrementaldecoder("utf-8")(errors="strict").decode

    def check(chunk: bytes, final: bool) -> bytes:
        decode(chunk, final)
        return chunk

    return check


def _transcoder(first_chunk: bytes) -> Tuple[Converter, bool]:
    """Pick how byte chunks are checked or converted before lxml sees them.

    UTF-8 documents (declared, BOM-marked or undeclared) are only validated
    and reach lxml untouched. Any other charset is decoded here and
    re-encoded as UTF-8. The second value tells whether the bytes handed to
    lxml differ from the declared charset.
    """
    _, bom_encoding = EncodingDetector.strip_byte_order_mark(first_chunk)
    declared = bom_encoding or EncodingDetector.find_declared_encoding(first_chunk, is_html=False)
    if not declared:
        return _utf8_checker(), False

    try:
        codec = codecs.lookup(declared)
    except LookupError as e:
        raise FeedDecodingError(f"Unsupported character set: {declared}") from e

    if codec.name == "utf-8":
        return _utf8_checker(), False

    decode = codec.incrementaldecoder(errors="strict").decode

    def transcode(chunk: bytes, final: bool) -> bytes:
        return decode(chunk, final).encode("utf-8")

    return transcode, True


def _convert(convert: Converter, chunk: bytes, final: bool = False) -> bytes:
    try:
        return convert(chunk, final)
    except UnicodeDecodeError as e:
        raise FeedDecodingError(f"Feed is not valid {e.encoding}: {e.reason}") from e


def _encode_text(chunk: str) -> bytes:
    try:
        return chunk.encode("utf-8")
    except UnicodeEncodeError as e:
        raise FeedDecodingError(f"Feed text cannot be encoded as UTF-8: {e.reason}") from e


def _feed(parser: etree.XMLParser, data: bytes) -> None:
    try:
        parser.feed(data)
    except etree.XMLSyntaxError as e:
        raise MalformedFeedError(f"Malformed feed document: {e}") from e


def _close(parser: etree.XMLParser) -> None:
    try:
        parser.close()
    except etree.XMLSyntaxError as e:
        raise MalformedFeedError(f"Malformed feed document: {e}") from e


def iter_events(stream, chunk_size: int = CHUNK_SIZE) -> Iterator[Event]:
    """Yield structural events from a feed document.

    Args:
        stream: Open binary or text stream. It is read to the end but never
            closed.
        chunk_size: Number of bytes (or characters) read per call

    Yields:
        StartElement, EndElement and CharData events in document order

    Raises:
        FeedReadError: If reading the stream fails
        FeedDecodingError: If the character set is unknown or invalid
        MalformedFeedError: If the markup cannot be recovered
    """
    collector = _EventCollector()
    chunk = _read(stream, chunk_size)

    if isinstance(chunk, str):
        convert = None
        transcoded = True
    else:
        convert, transcoded = _transcoder(chunk)

    # Overriding the encoding makes lxml ignore the declared charset of
    # documents that were already converted to UTF-8 here.
    encoding = "utf-8" if transcoded else None
    parser = etree.XMLParser(
        target=collector,
        encoding=encoding,
        recover=True,
        resolve_entities=False,
        no_network=True,
        huge_tree=True,
    )

    while chunk:
        if convert is None:
            data = _encode_text(chunk)
        else:
            data = _convert(convert, chunk)
        _feed(parser, data)
        yield from collector.drain()
        chunk = _read(stream, chunk_size)

    if convert is not None:
        tail = _convert(convert, b"", final=True)
        if tail:
            _feed(parser, tail)
    _close(parser)
    yield from collector.drain()

    if not collector.seen_root:
        raise MalformedFeedError("Malformed feed document: no root element found")
