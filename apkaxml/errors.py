from typing import Union


class ResParserError(Exception):
    """
    Exception for the parsers.

    Every error knows the absolute byte offset at which the problem was
    detected (or `None` if it is not tied to a position in the input).
    """

    def __init__(self, message: str, offset: Union[int, None] = None) -> None:
        self.message = message
        self.offset = offset
        if offset is not None:
            message = "{} Offset=0x{:08x}".format(message, offset)
        super().__init__(message)


class TruncatedInputError(ResParserError):
    """Fewer bytes are available than a field or record requires."""


class OutOfRangeError(ResParserError):
    """A seek targets a position outside the buffer."""


class SizeMismatchError(ResParserError):
    """A declared size disagrees with the bytes actually consumed."""


class BadMagicError(ResParserError):
    """A magic word (file header, tag flags) has the wrong value."""


class BadSentinelError(ResParserError):
    """The 0xFFFFFFFF marker is missing."""


class UnknownChunkTypeError(ResParserError):
    """A chunk type outside the AXML vocabulary."""


class InvalidEncodingError(ResParserError):
    """A string pool entry is not valid UTF-8 / UTF-16LE."""


class IndexOutOfRangeError(ResParserError):
    """A string pool or resource id reference is out of range."""


class ChunkSequenceError(ResParserError):
    """Chunks are missing, duplicated or in an order the format forbids."""


class MalformedTreeError(ResParserError):
    """The event stream does not describe a well nested element tree."""
