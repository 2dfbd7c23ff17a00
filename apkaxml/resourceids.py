from dataclasses import dataclass, field
from struct import pack
from typing import List

from loguru import logger

from .chunk import ChunkHeader
from .constants import RES_XML_RESOURCE_MAP
from .cursor import ByteCursor
from .errors import IndexOutOfRangeError, SizeMismatchError


@dataclass
class ResourceIdTable:
    """
    The RES_XML_RESOURCE_MAP chunk: a flat list of resource ids.
    The id at position `i` belongs to the attribute name with string id `i`.
    """

    ids: List[int] = field(default_factory=list)

    def __len__(self):
        return len(self.ids)

    def __getitem__(self, idx: int) -> int:
        if not 0 <= idx < len(self.ids):
            raise IndexOutOfRangeError(
                "Resource id index {} out of range, table has {} ids!".format(
                    idx, len(self.ids)
                )
            )
        return self.ids[idx]

    def encode(self) -> bytes:
        return encode_resource_ids(self)


def decode_resource_ids(buff: ByteCursor, header: ChunkHeader) -> ResourceIdTable:
    """
    Read the ids of a resource map chunk.

    :param buff: cursor positioned right after the chunk header
    :param header: the header of the chunk
    :raises SizeMismatchError: if the chunk size is not a multiple of 4
    """
    # Check size: < 8 bytes mean that the chunk is not complete
    # Should be aligned to 4 bytes.
    if header.size < ChunkHeader.SIZE or (header.size % 4) != 0:
        raise SizeMismatchError(
            "Invalid chunk size {} in chunk XML_RESOURCE_MAP".format(header.size),
            header.start + 4,
        )

    ids = []
    for i in range(header.size // 4 - 2):
        ids.append(buff.read_u32())
        logger.debug(f"resource_ids[{i}]: 0x{ids[i]:08x}")
    return ResourceIdTable(ids)


def encode_resource_ids(table: ResourceIdTable) -> bytes:
    # The size is always computed from the ids, never taken from a decoded header
    size = ChunkHeader.SIZE + 4 * len(table.ids)
    return pack('<II', RES_XML_RESOURCE_MAP, size) + pack(
        '<{}I'.format(len(table.ids)), *table.ids
    )
