from struct import unpack_from
from typing import Union

from .errors import OutOfRangeError, TruncatedInputError


class ByteCursor:
    """
    Little-endian reader over an in-memory buffer.

    The cursor can be restricted to a window `[start, end)` of the buffer,
    but all positions (`tell()`, seek targets and error offsets) are absolute
    offsets into the underlying buffer.
    Reads never go past the end of the window and seeks are never clamped.
    """

    def __init__(
        self,
        data: Union[bytes, bytearray, memoryview],
        start: int = 0,
        end: Union[int, None] = None,
    ) -> None:
        self._data = memoryview(data)
        if end is None:
            end = len(self._data)
        if not 0 <= start <= end <= len(self._data):
            raise OutOfRangeError(
                "Window [{}, {}) is outside the buffer of {} bytes!".format(
                    start, end, len(self._data)
                ),
                start,
            )
        self.start = start
        self.end = end
        self._pos = start

    def __repr__(self):
        return "<ByteCursor pos=0x{:08x} window=[0x{:x}, 0x{:x})>".format(
            self._pos, self.start, self.end
        )

    def tell(self) -> int:
        return self._pos

    def remaining(self) -> int:
        return self.end - self._pos

    def seek_absolute(self, offset: int) -> None:
        """
        :raises OutOfRangeError: if `offset` is outside the window
        """
        if not self.start <= offset <= self.end:
            raise OutOfRangeError(
                "Can not seek to 0x{:x}, window is [0x{:x}, 0x{:x})!".format(
                    offset, self.start, self.end
                ),
                self._pos,
            )
        self._pos = offset

    def seek_relative(self, delta: int) -> None:
        self.seek_absolute(self._pos + delta)

    def _take(self, n: int) -> int:
        if n < 0:
            raise OutOfRangeError("Negative read size {}!".format(n), self._pos)
        if self.remaining() < n:
            raise TruncatedInputError(
                "Can not read {} bytes, only {} left!".format(n, self.remaining()),
                self._pos,
            )
        pos = self._pos
        self._pos += n
        return pos

    def read_bytes(self, n: int) -> bytes:
        pos = self._take(n)
        return self._data[pos : pos + n].tobytes()

    def read_u8(self) -> int:
        return unpack_from('<B', self._data, self._take(1))[0]

    def read_u16(self) -> int:
        return unpack_from('<H', self._data, self._take(2))[0]

    def read_u32(self) -> int:
        return unpack_from('<I', self._data, self._take(4))[0]

    def read_i32(self) -> int:
        return unpack_from('<i', self._data, self._take(4))[0]

    def window(self, size: int) -> "ByteCursor":
        """
        Return a new cursor over the next `size` bytes.
        The position of this cursor is not changed.

        :raises TruncatedInputError: if fewer than `size` bytes are left
        """
        if size < 0 or self.remaining() < size:
            raise TruncatedInputError(
                "Can not open a window of {} bytes, only {} left!".format(
                    size, self.remaining()
                ),
                self._pos,
            )
        return ByteCursor(self._data, self._pos, self._pos + size)
