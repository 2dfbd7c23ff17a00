from dataclasses import dataclass
from struct import pack
from typing import ClassVar, Tuple, Union

from loguru import logger

from .chunk import ChunkHeader
from .constants import (
    ATTRIBUTE_FLAGS,
    ATTRIBUTE_SIZE,
    CDATA_CHUNK_SIZE,
    END_ELEMENT_CHUNK_SIZE,
    NAMESPACE_CHUNK_SIZE,
    NO_ENTRY,
    NO_INDEX,
    RES_XML_CDATA,
    RES_XML_END_ELEMENT,
    RES_XML_END_NAMESPACE,
    RES_XML_START_ELEMENT,
    RES_XML_START_NAMESPACE,
    START_ELEMENT_BASE_SIZE,
    TYPE_NULL,
)
from .cursor import ByteCursor
from .errors import (
    BadMagicError,
    BadSentinelError,
    SizeMismatchError,
    UnknownChunkTypeError,
)
from .stringpool import StringPool


@dataclass(frozen=True)
class Attribute:
    """
    One `ResXMLTree_attribute`.

    `raw_value_id` is -1 if the attribute has no literal string value.
    `value_type` is the first word of the typed `Res_value`
    (size, res0 and the data type in the highest byte).
    """

    namespace_id: int
    name_id: int
    raw_value_id: int
    value_type: int
    typed_value: int

    @property
    def data_type(self) -> int:
        """The `Res_value.dataType` byte"""
        return self.value_type >> 24


@dataclass(frozen=True)
class NamespaceStart:
    KIND: ClassVar[int] = RES_XML_START_NAMESPACE

    line: int
    prefix_id: int
    uri_id: int


@dataclass(frozen=True)
class NamespaceEnd:
    KIND: ClassVar[int] = RES_XML_END_NAMESPACE

    line: int
    prefix_id: int
    uri_id: int


@dataclass(frozen=True)
class TagStart:
    """
    Start of an element.
    `id_index`, `class_index` and `style_index` are the 1-based positions of
    the special attributes inside `attributes`, 0 if there is none.
    """

    KIND: ClassVar[int] = RES_XML_START_ELEMENT

    line: int
    namespace_id: int
    name_id: int
    attributes: Tuple[Attribute, ...] = ()
    id_index: int = 0
    class_index: int = 0
    style_index: int = 0


@dataclass(frozen=True)
class TagEnd:
    KIND: ClassVar[int] = RES_XML_END_ELEMENT

    line: int
    namespace_id: int
    name_id: int


@dataclass(frozen=True)
class Text:
    """
    A CDATA chunk. Besides the string it carries a typed value,
    which is usually undefined.
    """

    KIND: ClassVar[int] = RES_XML_CDATA

    line: int
    value_id: int
    typed_type: int = TYPE_NULL
    typed_data: int = 0


XmlEvent = Union[NamespaceStart, NamespaceEnd, TagStart, TagEnd, Text]

# Fixed part of every XML node record, header included
MINIMUM_SIZES = {
    RES_XML_START_NAMESPACE: NAMESPACE_CHUNK_SIZE,
    RES_XML_END_NAMESPACE: NAMESPACE_CHUNK_SIZE,
    RES_XML_START_ELEMENT: START_ELEMENT_BASE_SIZE,
    RES_XML_END_ELEMENT: END_ELEMENT_CHUNK_SIZE,
    RES_XML_CDATA: CDATA_CHUNK_SIZE,
}


def decode_event(
    buff: ByteCursor, header: ChunkHeader, string_pool: StringPool
) -> XmlEvent:
    """
    Decode the body of a XML node chunk.

    :param buff: cursor positioned right after the chunk header
    :param header: the header of the chunk
    :param string_pool: the pool all string ids are checked against
    :raises SizeMismatchError: if the record does not fill the declared size exactly
    """
    minimum = MINIMUM_SIZES.get(header.kind)
    if minimum is not None and header.size < minimum:
        raise SizeMismatchError(
            "{} declares {} bytes, the record needs at least {}!".format(
                header.name, header.size, minimum
            ),
            header.start + 4,
        )

    if header.kind in (RES_XML_START_NAMESPACE, RES_XML_END_NAMESPACE):
        event = _decode_namespace(buff, header, string_pool)
    elif header.kind == RES_XML_START_ELEMENT:
        event = _decode_start_element(buff, header, string_pool)
    elif header.kind == RES_XML_END_ELEMENT:
        event = _decode_end_element(buff, string_pool)
    elif header.kind == RES_XML_CDATA:
        event = _decode_cdata(buff, string_pool)
    else:
        raise UnknownChunkTypeError(
            "Not a XML node chunk type: 0x{:08x}".format(header.kind), header.start
        )

    if buff.tell() != header.end:
        raise SizeMismatchError(
            "{} declares {} bytes but the record has {}!".format(
                header.name, header.size, buff.tell() - header.start
            ),
            header.start + 4,
        )
    logger.debug(f"event: {event}")
    return event


def _read_comment(buff: ByteCursor) -> None:
    # Comment_Index, must be 0xFFFFFFFF
    at = buff.tell()
    comment = buff.read_u32()
    if comment != NO_ENTRY:
        raise BadSentinelError(
            "Expected block 0xFFFFFFFF, found 0x{:08X}".format(comment), at
        )


def _read_string_ref(
    buff: ByteCursor, string_pool: StringPool, nullable: bool = False
) -> int:
    at = buff.tell()
    if nullable:
        idx = buff.read_i32()
        if idx == NO_INDEX:
            return idx
    else:
        idx = buff.read_u32()
    return string_pool.check_index(idx, at)


def _decode_namespace(
    buff: ByteCursor, header: ChunkHeader, string_pool: StringPool
) -> Union[NamespaceStart, NamespaceEnd]:
    line = buff.read_u32()
    _read_comment(buff)
    prefix = _read_string_ref(buff, string_pool, nullable=True)
    uri = _read_string_ref(buff, string_pool, nullable=True)
    if header.kind == RES_XML_START_NAMESPACE:
        return NamespaceStart(line, prefix, uri)
    return NamespaceEnd(line, prefix, uri)


def _decode_start_element(
    buff: ByteCursor, header: ChunkHeader, string_pool: StringPool
) -> TagStart:
    # The TAG consists of some fields:
    # * (chunk_size, line_number, comment_index - we read before)
    # * namespace_uri
    # * name
    # * flags (attribute_start and attribute_size, always 0x14 both)
    # * attribute_count, id_index, class_index, style_index
    # After that, there is the list of attributes, 20 bytes each
    line = buff.read_u32()
    _read_comment(buff)
    namespace = _read_string_ref(buff, string_pool, nullable=True)
    name = _read_string_ref(buff, string_pool)

    flags_at = buff.tell()
    flags = buff.read_u32()
    # Check if flag is magic number
    if flags != ATTRIBUTE_FLAGS:
        raise BadMagicError(
            "Expected flag 0x{:08X}, found 0x{:08X}".format(ATTRIBUTE_FLAGS, flags),
            flags_at,
        )

    attribute_count = buff.read_u16()
    id_index = buff.read_u16()
    class_index = buff.read_u16()
    style_index = buff.read_u16()
    logger.debug(
        f"attribute_count: {attribute_count}, id: {id_index}, class: {class_index}, style: {style_index}"
    )

    expected = START_ELEMENT_BASE_SIZE + ATTRIBUTE_SIZE * attribute_count
    if header.size != expected:
        raise SizeMismatchError(
            "Element with {} attributes needs {} bytes, chunk declares {}!".format(
                attribute_count, expected, header.size
            ),
            header.start + 4,
        )

    # Each attribute has 5 fields of 4 byte
    attributes = []
    for _ in range(attribute_count):
        attributes.append(
            Attribute(
                _read_string_ref(buff, string_pool, nullable=True),
                _read_string_ref(buff, string_pool),
                _read_string_ref(buff, string_pool, nullable=True),
                buff.read_u32(),
                buff.read_u32(),
            )
        )

    return TagStart(
        line, namespace, name, tuple(attributes), id_index, class_index, style_index
    )


def _decode_end_element(buff: ByteCursor, string_pool: StringPool) -> TagEnd:
    line = buff.read_u32()
    # The comment index of an end tag is ignored, it is not checked for 0xFFFFFFFF
    buff.read_u32()
    namespace = _read_string_ref(buff, string_pool, nullable=True)
    name = _read_string_ref(buff, string_pool)
    return TagEnd(line, namespace, name)


def _decode_cdata(buff: ByteCursor, string_pool: StringPool) -> Text:
    # The CDATA field is like an attribute.
    # It contains an index into the String pool
    # as well as a typed value.
    line = buff.read_u32()
    # comment index, ignored
    buff.read_u32()
    value = _read_string_ref(buff, string_pool)

    # Res_value typedData:
    # uint16_t size
    # uint8_t res0 -> always zero
    # uint8_t dataType
    # uint32_t data
    # For now, size and res0 are ignored. The encoder writes 8 and 0.
    buff.read_u16()
    buff.read_u8()
    data_type = buff.read_u8()
    data = buff.read_u32()
    return Text(line, value, data_type, data)


def encode_event(event: XmlEvent) -> bytes:
    """
    Serialize an event into its node chunk, header included.
    """
    if isinstance(event, (NamespaceStart, NamespaceEnd)):
        return pack(
            '<IIIIii',
            event.KIND,
            NAMESPACE_CHUNK_SIZE,
            event.line,
            NO_ENTRY,
            event.prefix_id,
            event.uri_id,
        )

    if isinstance(event, TagStart):
        size = START_ELEMENT_BASE_SIZE + ATTRIBUTE_SIZE * len(event.attributes)
        result = pack(
            '<IIIIiIIHHHH',
            event.KIND,
            size,
            event.line,
            NO_ENTRY,
            event.namespace_id,
            event.name_id,
            ATTRIBUTE_FLAGS,
            len(event.attributes),
            event.id_index,
            event.class_index,
            event.style_index,
        )
        for attr in event.attributes:
            result += pack(
                '<iIiII',
                attr.namespace_id,
                attr.name_id,
                attr.raw_value_id,
                attr.value_type,
                attr.typed_value,
            )
        return result

    if isinstance(event, TagEnd):
        return pack(
            '<IIIIiI',
            event.KIND,
            END_ELEMENT_CHUNK_SIZE,
            event.line,
            NO_ENTRY,
            event.namespace_id,
            event.name_id,
        )

    if isinstance(event, Text):
        return pack(
            '<IIIIIHBBI',
            event.KIND,
            CDATA_CHUNK_SIZE,
            event.line,
            NO_ENTRY,
            event.value_id,
            8,
            0,
            event.typed_type,
            event.typed_data,
        )

    raise TypeError("Not a XML event: {!r}".format(event))
