"""
Decoder for Android's compiled binary XML (AXML).

Based on androguard's code https://androguard.readthedocs.io/en/latest/intro/axml.html
"""
from loguru import logger

from .chunk import ChunkHeader
from .cursor import ByteCursor
from .encoder import AXMLEncoder, encode
from .errors import (
    BadMagicError,
    BadSentinelError,
    ChunkSequenceError,
    IndexOutOfRangeError,
    InvalidEncodingError,
    MalformedTreeError,
    OutOfRangeError,
    ResParserError,
    SizeMismatchError,
    TruncatedInputError,
    UnknownChunkTypeError,
)
from .events import (
    Attribute,
    NamespaceEnd,
    NamespaceStart,
    TagEnd,
    TagStart,
    Text,
    XmlEvent,
    decode_event,
    encode_event,
)
from .parser import AXMLParser, ChunkTrace, Document, decode, iter_events
from .resourceids import ResourceIdTable, decode_resource_ids, encode_resource_ids
from .stringpool import Encoding, StringPool, decode_string_pool
from .tree import build_tree
from .values import attribute_value, complex_to_float, format_value

# Silent unless the application enables it, see apkaxml.log.configure_logging
logger.disable("apkaxml")

__version__ = "0.1.0"
