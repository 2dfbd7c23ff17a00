import io
from struct import pack

from loguru import logger

from .chunk import ChunkHeader
from .constants import RES_XML_FILE
from .events import encode_event
from .resourceids import encode_resource_ids


class AXMLEncoder:
    """
    Serializer for a [Document][apkaxml.parser.Document].

    The file is written as the file header followed by the string pool,
    the resource map (if any) and one chunk per event.
    All sizes and string offsets are computed from the content,
    stored offsets of a decoded document are not reused.
    """

    def __init__(self, document) -> None:
        chunks = [document.string_pool.encode()]
        if document.resource_ids is not None:
            chunks.append(encode_resource_ids(document.resource_ids))
        for event in document.events:
            chunks.append(encode_event(event))

        self.axml_size = ChunkHeader.SIZE + sum(len(chunk) for chunk in chunks)
        logger.debug(f"AXMLEncoder: {len(chunks)} chunks, {self.axml_size} bytes")

        self.buffer = io.BytesIO()
        # writing first header
        self.write_ResChunk_header(RES_XML_FILE, self.axml_size)
        for chunk in chunks:
            self.buffer.write(chunk)

    def get_bytes(self) -> bytes:
        return self.buffer.getbuffer().tobytes()

    def write_ResChunk_header(self, kind: int, size: int) -> None:
        self.buffer.write(pack("<II", kind, size))


def encode(document) -> bytes:
    return AXMLEncoder(document).get_bytes()
