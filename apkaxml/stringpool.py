import enum
from struct import pack
from typing import Iterable, Sequence, Union

from loguru import logger

from .chunk import ChunkHeader
from .constants import RES_STRING_POOL, STRING_POOL_HEADER_SIZE, UTF8_FLAG
from .cursor import ByteCursor
from .errors import (
    BadMagicError,
    IndexOutOfRangeError,
    InvalidEncodingError,
    SizeMismatchError,
)


class Encoding(enum.Enum):
    UTF8 = "utf-8"
    UTF16LE = "utf-16-le"


class StringPool:
    """
    StringPool is a CHUNK inside an AXML File: `ResStringPool_header`
    It contains all strings, which are used by referencing to ID's

    The pool is built once by [decode_string_pool][apkaxml.stringpool.decode_string_pool]
    and is not changed afterwards, strings and offsets are stored as tuples.
    If no offsets are given, the offsets of a tightly packed string data
    section are computed.

    See http://androidxref.com/9.0.0_r3/xref/frameworks/base/libs/androidfw/include/androidfw/ResourceTypes.h#436
    """

    def __init__(
        self,
        strings: Iterable[str] = (),
        flags: int = 0,
        offsets: Union[Sequence[int], None] = None,
        style_offsets: Union[Sequence[int], None] = None,
        style_data: bytes = b"",
    ) -> None:
        self.flags = flags
        self.strings = tuple(strings)
        if offsets is None:
            offsets = []
            position = 0
            for s in self.strings:
                offsets.append(position)
                position += len(_encode_string(s, self.encoding))
        if len(offsets) != len(self.strings):
            raise ValueError(
                "Got {} offsets for {} strings".format(len(offsets), len(self.strings))
            )
        self.offsets = tuple(offsets)
        self.style_offsets = tuple(style_offsets or ())
        self.style_data = bytes(style_data)

    @property
    def is_utf8(self) -> bool:
        return (self.flags & UTF8_FLAG) != 0

    @property
    def encoding(self) -> Encoding:
        return Encoding.UTF8 if self.is_utf8 else Encoding.UTF16LE

    @property
    def style_count(self) -> int:
        return len(self.style_offsets)

    def __repr__(self):
        return "<StringPool #strings={}, #styles={}, UTF8={}>".format(
            len(self.strings), self.style_count, self.is_utf8
        )

    def __eq__(self, other):
        if not isinstance(other, StringPool):
            return NotImplemented
        return (
            self.flags == other.flags
            and self.strings == other.strings
            and self.offsets == other.offsets
            and self.style_offsets == other.style_offsets
            and self.style_data == other.style_data
        )

    def __len__(self):
        return len(self.strings)

    def __iter__(self):
        return iter(self.strings)

    def __getitem__(self, idx: int) -> str:
        return self.get_string(idx)

    def check_index(self, idx: int, offset: Union[int, None] = None) -> int:
        """
        Make sure `idx` is a valid string id.

        :param offset: byte offset reported in the error
        :raises IndexOutOfRangeError: if the id is not in the pool
        """
        if not 0 <= idx < len(self.strings):
            raise IndexOutOfRangeError(
                "String index {} out of range, pool has {} strings!".format(
                    idx, len(self.strings)
                ),
                offset,
            )
        return idx

    def get_string(self, idx: int) -> str:
        """
        Return the string at the index in the string table

        :param idx: index in the string table
        :raises IndexOutOfRangeError: if the id is not in the pool
        """
        return self.strings[self.check_index(idx)]

    def encode(self) -> bytes:
        """
        Serialize the pool into a complete RES_STRING_POOL chunk.
        Offsets are computed from the strings, styles are written back as read.
        """
        offsets = []
        data = b""
        for s in self.strings:
            offsets.append(len(data))
            data += _encode_string(s, self.encoding)
        # string data is padded to four bytes
        data += b"\x00" * (-len(data) % 4)

        strings_start = STRING_POOL_HEADER_SIZE + 4 * (
            len(self.strings) + self.style_count
        )
        styles_start = 0
        if self.style_count:
            styles_start = strings_start + len(data)
        size = strings_start + len(data) + len(self.style_data)

        result = pack(
            '<7I',
            RES_STRING_POOL,
            size,
            len(self.strings),
            self.style_count,
            self.flags,
            strings_start,
            styles_start,
        )
        result += pack('<{}I'.format(len(offsets)), *offsets)
        result += pack('<{}I'.format(self.style_count), *self.style_offsets)
        return result + data + self.style_data


def decode_string_pool(buff: ByteCursor, header: ChunkHeader) -> StringPool:
    """
    Decode a RES_STRING_POOL chunk.

    Strings are read by seeking to `strings_start + offsets[i]`, the layout
    of the string data is never assumed to be sequential.

    :param buff: cursor positioned right after the chunk header
    :param header: the header of the chunk
    :raises BadMagicError: if the counts do not fit into the chunk
    :raises IndexOutOfRangeError: if an offset points outside the string data
    :raises InvalidEncodingError: if a string can not be decoded
    """
    if header.size < STRING_POOL_HEADER_SIZE:
        raise SizeMismatchError(
            "String pool declares {} bytes, its header alone needs {}!".format(
                header.size, STRING_POOL_HEADER_SIZE
            ),
            header.start + 4,
        )

    counts_at = buff.tell()
    string_count = buff.read_u32()
    style_count = buff.read_u32()
    flags = buff.read_u32()
    # The string offset is counted from the beginning of the chunk
    strings_start = buff.read_u32()
    # The styles offset is counted as well from the beginning of the chunk
    styles_start = buff.read_u32()
    logger.debug(
        f"string_count: {string_count}, style_count: {style_count}, flags: 0x{flags:x}, "
        f"strings_start: {strings_start}, styles_start: {styles_start}"
    )

    tables_end = STRING_POOL_HEADER_SIZE + 4 * (string_count + style_count)
    if tables_end > header.size:
        raise BadMagicError(
            "{} strings and {} styles do not fit into a string pool of {} bytes!".format(
                string_count, style_count, header.size
            ),
            counts_at,
        )

    # Next, there is a list of string offsets, 4 byte each, and a list of style offsets
    offsets = [buff.read_u32() for _ in range(string_count)]
    style_offsets = [buff.read_u32() for _ in range(style_count)]

    if style_count == 0 and styles_start > 0:
        logger.info(
            "Styles Offset given, but styleCount is zero. "
            "This is not a problem but could indicate packers."
        )

    # if there are styles as well, they end the string data
    strings_end = header.size
    if style_count != 0 and styles_start != 0:
        strings_end = styles_start

    strings = []
    if string_count:
        if not tables_end <= strings_start <= strings_end <= header.size:
            raise SizeMismatchError(
                "String data [{}, {}) does not fit into the string pool of {} bytes!".format(
                    strings_start, strings_end, header.size
                ),
                header.start + 20,
            )
        if (strings_end - strings_start) % 4 != 0:
            logger.warning("Size of strings is not aligned by four bytes.")

        buff.seek_absolute(header.start + strings_start)
        region = buff.window(strings_end - strings_start)
        is_utf8 = (flags & UTF8_FLAG) != 0
        for i, offset in enumerate(offsets):
            if offset >= strings_end - strings_start:
                raise IndexOutOfRangeError(
                    "String offset {} points outside of the string data ({} bytes)!".format(
                        offset, strings_end - strings_start
                    ),
                    counts_at + 20 + 4 * i,
                )
            region.seek_absolute(region.start + offset)
            if is_utf8:
                strings.append(_decode8(region))
            else:
                strings.append(_decode16(region))
            logger.debug(f"strings[{i}]: {strings[i]!r}")

    style_data = b""
    if style_count != 0 and styles_start != 0:
        if not tables_end <= styles_start <= header.size:
            raise SizeMismatchError(
                "Style data at {} is outside the string pool of {} bytes!".format(
                    styles_start, header.size
                ),
                header.start + 24,
            )
        if (header.size - styles_start) % 4 != 0:
            logger.warning("Size of styles is not aligned by four bytes.")
        buff.seek_absolute(header.start + styles_start)
        style_data = buff.read_bytes(header.size - styles_start)

    return StringPool(strings, flags, offsets, style_offsets, style_data)


def _decode8(region: ByteCursor) -> str:
    """
    Decode an UTF-8 String at the current position

    UTF-8 Strings contain two lengths, as they might differ:
    the UTF-16 length and the UTF-8 length in bytes.
    """
    start = region.tell()
    str_len = _decode_length8(region)
    encoded_bytes = _decode_length8(region)
    data = region.read_bytes(encoded_bytes)

    # non-null terminated strings are rejected
    # platform/frameworks/base/libs/androidfw/ResourceTypes.cpp#789
    if region.read_u8() != 0:
        raise InvalidEncodingError("UTF-8 String is not null terminated!", start)

    try:
        string = data.decode('utf-8')
    except UnicodeDecodeError as e:
        raise InvalidEncodingError("Invalid UTF-8 String: {}".format(e), start) from e

    if len(string.encode('utf-16-le')) // 2 != str_len:
        logger.warning("invalid decoded string length")
    return string


def _decode16(region: ByteCursor) -> str:
    """
    Decode an UTF-16 String at the current position
    """
    start = region.tell()
    str_len = region.read_u16()
    if str_len & 0x8000:
        str_len = ((str_len & 0x7FFF) << 16) | region.read_u16()

    # The len is the string len in utf-16 units
    data = region.read_bytes(str_len * 2)

    if region.read_u16() != 0:
        raise InvalidEncodingError("UTF-16 String is not null terminated!", start)

    try:
        return data.decode('utf-16-le')
    except UnicodeDecodeError as e:
        raise InvalidEncodingError("Invalid UTF-16 String: {}".format(e), start) from e


def _decode_length8(region: ByteCursor) -> int:
    # one byte, or two if the high bit of the first one is set
    length = region.read_u8()
    if length & 0x80:
        length = ((length & 0x7F) << 8) | region.read_u8()
    return length


def _encode_length8(length: int) -> bytes:
    if length > 0x7FFF:
        raise ValueError("length of UTF-8 string is too large: {}".format(length))
    if length > 0x7F:
        return bytes([0x80 | (length >> 8), length & 0xFF])
    return bytes([length])


def _encode_string(s: str, encoding: Encoding) -> bytes:
    utf16 = s.encode('utf-16-le')
    units = len(utf16) // 2
    if encoding is Encoding.UTF8:
        encoded = s.encode('utf-8')
        return _encode_length8(units) + _encode_length8(len(encoded)) + encoded + b"\x00"

    if units > 0x7FFFFFFF:
        raise ValueError("length of UTF-16 string is too large: {}".format(units))
    if units > 0x7FFF:
        prefix = pack('<HH', 0x8000 | (units >> 16), units & 0xFFFF)
    else:
        prefix = pack('<H', units)
    return prefix + utf16 + b"\x00\x00"
