from dataclasses import dataclass, field
from typing import Callable, Iterator, List, Union

from loguru import logger

from .chunk import ChunkHeader
from .constants import (
    RES_STRING_POOL,
    RES_XML_CDATA,
    RES_XML_END_ELEMENT,
    RES_XML_END_NAMESPACE,
    RES_XML_FILE,
    RES_XML_RESOURCE_MAP,
    RES_XML_START_ELEMENT,
    RES_XML_START_NAMESPACE,
)
from .cursor import ByteCursor
from .errors import (
    BadMagicError,
    ChunkSequenceError,
    ResParserError,
    SizeMismatchError,
    TruncatedInputError,
    UnknownChunkTypeError,
)
from .events import XmlEvent, decode_event
from .resourceids import ResourceIdTable, decode_resource_ids
from .stringpool import StringPool, decode_string_pool
from .tree import build_tree

EVENT_CHUNKS = (
    RES_XML_START_NAMESPACE,
    RES_XML_END_NAMESPACE,
    RES_XML_START_ELEMENT,
    RES_XML_END_ELEMENT,
    RES_XML_CDATA,
)


@dataclass(frozen=True)
class ChunkTrace:
    """What the parser hands to a `trace` callable for every chunk it reads"""

    offset: int
    kind: int
    size: int
    name: str


@dataclass
class Document:
    """
    A fully decoded AXML file.
    Events reference strings and resource ids by plain integer ids.

    The string pool and the events are immutable. The document itself and
    the resource id list may be changed before handing it to the encoder,
    which recomputes every size.
    """

    string_pool: StringPool
    resource_ids: Union[ResourceIdTable, None] = None
    events: List[XmlEvent] = field(default_factory=list)

    def get_string(self, idx: int) -> str:
        return self.string_pool.get_string(idx)

    def resource_id(self, name_id: int) -> int:
        """
        Return the resource id mapped to the attribute name with string id `name_id`

        :raises IndexOutOfRangeError: if there is no id for this name
        """
        table = self.resource_ids or ResourceIdTable()
        return table[name_id]

    def to_element(self):
        """
        Assemble the events into an `lxml.etree.Element`,
        see [build_tree][apkaxml.tree.build_tree]
        """
        return build_tree(self)


class AXMLParser:
    """
    `AXMLParser` reads through all chunks in the AXML file
    and yields a [XmlEvent][apkaxml.events.XmlEvent] for every XML node chunk.

    An AXML file is a file which contains multiple chunks of data, defined
    by the `ResChunk_header`. The file starts with the header
    `0x00080003` followed by the size of the whole file.

    The string pool and the resource map are processed in the parser only,
    they can be retrieved from `string_pool` and `resource_ids` once
    they have been read. The string pool must come before any XML node.

    Every problem is raised as a [ResParserError][apkaxml.errors.ResParserError]
    and ends the parsing, the parser does not try to recover.

    See http://androidxref.com/9.0.0_r3/xref/frameworks/base/libs/androidfw/include/androidfw/ResourceTypes.h#563
    """

    def __init__(
        self,
        raw_buff: bytes,
        trace: Union[Callable[[ChunkTrace], None], None] = None,
    ) -> None:
        """
        :param raw_buff: the complete AXML file
        :param trace: optional callable which is called with a `ChunkTrace` for every chunk
        :raises ResParserError: if the file header is not valid
        """
        logger.debug("AXMLParser")

        self.buff = ByteCursor(raw_buff)
        self.buff_size = self.buff.end
        self.trace = trace
        self.string_pool = None
        self.resource_ids = None
        self._done = False

        if self.buff_size > 0xFFFFFFFF:
            raise SizeMismatchError(
                "Filesize is too large to be a valid AXML file! Filesize: {}".format(
                    self.buff_size
                ),
                0,
            )
        if self.buff_size < ChunkHeader.SIZE:
            raise TruncatedInputError(
                "Filesize is too small to be a valid AXML file! Filesize: {}".format(
                    self.buff_size
                ),
                0,
            )

        kind = self.buff.read_u32()
        self.filesize = self.buff.read_u32()
        logger.debug(f"buff_size: {self.buff_size}, filesize: {self.filesize}")

        if kind != RES_XML_FILE:
            raise BadMagicError(
                "AXML file has wrong header: 0x{:08x}".format(kind), 0
            )
        if self.filesize > self.buff_size:
            raise TruncatedInputError(
                "Declared filesize does not match real size: {} vs {}".format(
                    self.filesize, self.buff_size
                ),
                4,
            )
        if self.filesize < self.buff_size:
            raise SizeMismatchError(
                "Declared filesize ({}) is smaller than total file size ({})".format(
                    self.filesize, self.buff_size
                ),
                4,
            )

        self._trace(ChunkHeader(0, kind, self.filesize))
        self._offset = ChunkHeader.SIZE

    def _trace(self, header: ChunkHeader) -> None:
        if self.trace is not None:
            self.trace(ChunkTrace(header.start, header.kind, header.size, header.name))

    def __iter__(self):
        return self

    def __next__(self) -> XmlEvent:
        if self._done:
            raise StopIteration
        try:
            event = self._next_event()
        except ResParserError:
            self._done = True
            raise
        if event is None:
            self._done = True
            raise StopIteration
        return event

    def _next_event(self) -> Union[XmlEvent, None]:
        while self._offset < self.filesize:
            # Never trust the position a decoder left behind
            self.buff.seek_absolute(self._offset)
            h = ChunkHeader.read(self.buff)
            self._trace(h)
            self._offset = h.end
            # Decoders only ever see the bytes of their own chunk
            body = self.buff.window(h.size - ChunkHeader.SIZE)

            if h.kind == RES_STRING_POOL:
                if self.string_pool is not None:
                    raise ChunkSequenceError(
                        "AXML file contains a second string pool!", h.start
                    )
                self.string_pool = decode_string_pool(body, h)
                logger.debug(f"STRING_POOL {self.string_pool}")
                continue

            # Special chunk: Resource Map. This chunk might be contained inside
            # the file, after the string pool.
            if h.kind == RES_XML_RESOURCE_MAP:
                if self.resource_ids is not None:
                    raise ChunkSequenceError(
                        "AXML file contains a second resource map!", h.start
                    )
                logger.debug("AXML contains a RESOURCE MAP")
                self.resource_ids = decode_resource_ids(body, h)
                continue

            if h.kind in EVENT_CHUNKS:
                if self.string_pool is None:
                    raise ChunkSequenceError(
                        "{} chunk found before the string pool!".format(h.name),
                        h.start,
                    )
                return decode_event(body, h, self.string_pool)

            raise UnknownChunkTypeError(
                "Unknown chunk type: 0x{:08X}".format(h.kind), h.start
            )

        if self.string_pool is None:
            raise ChunkSequenceError(
                "AXML file does not contain a string pool!", self.filesize
            )
        return None


def iter_events(
    raw_buff: bytes, trace: Union[Callable[[ChunkTrace], None], None] = None
) -> Iterator[XmlEvent]:
    """
    Lazily decode the events of `raw_buff`.
    Every call starts a new, independent decode of the same bytes.
    """
    yield from AXMLParser(raw_buff, trace)


def decode(
    raw_buff: bytes, trace: Union[Callable[[ChunkTrace], None], None] = None
) -> Document:
    """
    Decode a complete AXML file

    :raises ResParserError: on the first violated invariant, nothing is returned partially
    """
    parser = AXMLParser(raw_buff, trace)
    events = list(parser)
    return Document(parser.string_pool, parser.resource_ids, events)
