from loguru import logger

from .constants import CHUNK_NAMES
from .cursor import ByteCursor
from .errors import SizeMismatchError, TruncatedInputError


class ChunkHeader:
    """
    Object which contains the header of a Resource Chunk.
    This is an implementation of the `ResChunk_header`, read as two words:
    the chunk kind (type and header size) and the total chunk size.

    Only the shape is validated here. Whether the kind is known is decided by
    the caller.

    See http://androidxref.com/9.0.0_r3/xref/frameworks/base/libs/androidfw/include/androidfw/ResourceTypes.h#196
    """

    # This is the minimal size such a header must have. There might be other header data too!
    SIZE = 4 + 4

    def __init__(self, start: int, kind: int, size: int) -> None:
        self.start = start
        self.kind = kind
        self.size = size

    @classmethod
    def read(cls, buff: ByteCursor) -> "ChunkHeader":
        """
        :raises TruncatedInputError: if the header or the declared chunk does not fit into the buffer
        :raises SizeMismatchError: if the declared size is smaller than the header itself
        :param buff: the cursor set to the position where the header starts.
        """
        start = buff.tell()
        if buff.remaining() < cls.SIZE:
            raise TruncatedInputError(
                "Can not read a chunk header, only {} bytes left!".format(
                    buff.remaining()
                ),
                start,
            )
        kind = buff.read_u32()
        size = buff.read_u32()
        header = cls(start, kind, size)
        logger.debug(f"ChunkHeader read: {header}")

        if size < cls.SIZE:
            raise SizeMismatchError(
                "declared chunk size {} is smaller than required size of {}!".format(
                    size, cls.SIZE
                ),
                start + 4,
            )
        if size - cls.SIZE > buff.remaining():
            raise TruncatedInputError(
                "declared chunk size {} exceeds the {} bytes left!".format(
                    size, buff.remaining() + cls.SIZE
                ),
                start + 4,
            )
        return header

    @property
    def type(self) -> int:
        """
        Type identifier for this chunk, the low half of the kind
        """
        return self.kind & 0xFFFF

    @property
    def header_size(self) -> int:
        """
        Size of the chunk header (in bytes), the high half of the kind
        """
        return self.kind >> 16

    @property
    def name(self) -> str:
        return CHUNK_NAMES.get(self.kind, "UNKNOWN")

    @property
    def end(self) -> int:
        """
        Get the absolute offset inside the file, where the chunk ends.
        This is equal to `ChunkHeader.start + ChunkHeader.size`.
        """
        return self.start + self.size

    def __repr__(self):
        return "<ChunkHeader idx='0x{:08x}' kind='0x{:08x}' ({}) size='{}'>".format(
            self.start, self.kind, self.name, self.size
        )
