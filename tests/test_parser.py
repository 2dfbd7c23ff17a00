"""Tests for the document assembler."""
from __future__ import annotations

import struct

import pytest

from apkaxml import (
    AXMLParser,
    Document,
    NamespaceEnd,
    NamespaceStart,
    TagEnd,
    TagStart,
    Text,
    decode,
    iter_events,
)
from apkaxml.errors import (
    BadMagicError,
    ChunkSequenceError,
    IndexOutOfRangeError,
    ResParserError,
    SizeMismatchError,
    TruncatedInputError,
    UnknownChunkTypeError,
)

import builders


def test_namespace_and_tag_scenario(android_pool) -> None:
    data = builders.axml(
        android_pool,
        builders.namespace(builders.START_NS, 1, 0, 1),
        builders.start_tag(2, -1, 2),
    )
    document = decode(data)
    assert document.events[0] == NamespaceStart(1, 0, 1)
    assert isinstance(document.events[1], TagStart)
    assert document.get_string(document.events[1].name_id) == "versionCode"
    assert document.resource_ids is None


def test_bad_flag_word_reports_flag_offset(android_pool) -> None:
    data = builders.axml(
        android_pool,
        builders.namespace(builders.START_NS, 1, 0, 1),
        builders.start_tag(2, -1, 2, flags=0x00140013),
    )
    tag_start = 8 + len(android_pool) + 24
    with pytest.raises(BadMagicError) as exc:
        decode(data)
    assert exc.value.offset == tag_start + 24
    assert struct.unpack_from("<I", data, exc.value.offset)[0] == 0x00140013


def test_manifest(manifest_bytes) -> None:
    document = decode(manifest_bytes)
    assert isinstance(document, Document)
    assert document.string_pool.strings == tuple(builders.MANIFEST_STRINGS)
    assert document.resource_ids.ids == [0x0101021B]
    assert document.resource_id(builders.VERSION_CODE) == 0x0101021B
    assert [type(e) for e in document.events] == [
        NamespaceStart,
        TagStart,
        TagStart,
        Text,
        TagEnd,
        TagEnd,
        NamespaceEnd,
    ]
    with pytest.raises(IndexOutOfRangeError):
        document.resource_id(builders.PACKAGE)


def test_all_string_ids_are_in_range(manifest_bytes) -> None:
    document = decode(manifest_bytes)
    bound = len(document.string_pool)
    for event in document.events:
        for name in ("prefix_id", "uri_id", "namespace_id", "name_id", "value_id"):
            value = getattr(event, name, -1)
            assert value == -1 or 0 <= value < bound
        for attr in getattr(event, "attributes", ()):
            assert attr.raw_value_id == -1 or attr.raw_value_id < bound
            assert attr.name_id < bound


def test_iter_events_is_restartable(manifest_bytes) -> None:
    first = list(iter_events(manifest_bytes))
    second = list(iter_events(manifest_bytes))
    assert first == second == decode(manifest_bytes).events


def test_parser_is_lazy(manifest_bytes) -> None:
    parser = AXMLParser(manifest_bytes)
    assert parser.string_pool is None
    assert next(parser) == NamespaceStart(1, builders.ANDROID, builders.URI)
    assert parser.string_pool.strings == tuple(builders.MANIFEST_STRINGS)
    assert parser.resource_ids.ids == [0x0101021B]
    assert len(list(parser)) == 6


def test_trace_gets_every_chunk(manifest_bytes) -> None:
    seen = []
    decode(manifest_bytes, trace=seen.append)
    assert [t.name for t in seen] == [
        "RES_XML_FILE",
        "RES_STRING_POOL",
        "RES_XML_RESOURCE_MAP",
        "RES_XML_START_NAMESPACE",
        "RES_XML_START_ELEMENT",
        "RES_XML_START_ELEMENT",
        "RES_XML_CDATA",
        "RES_XML_END_ELEMENT",
        "RES_XML_END_ELEMENT",
        "RES_XML_END_NAMESPACE",
    ]
    offsets = [t.offset for t in seen[1:]]
    assert offsets == sorted(offsets)
    assert seen[-1].offset + seen[-1].size == len(manifest_bytes)


def test_truncation_at_chunk_boundaries() -> None:
    chunks = builders.manifest_chunks()
    data = builders.axml(*chunks)
    boundary = 8
    for chunk in chunks:
        with pytest.raises((TruncatedInputError, SizeMismatchError)):
            decode(data[:boundary])
        boundary += len(chunk)
    assert boundary == len(data)


def test_truncation_inside_chunks_with_patched_size(manifest_bytes) -> None:
    boundaries = {8}
    for chunk in builders.manifest_chunks():
        boundaries.add(max(boundaries) + len(chunk))
    for cut in range(9, len(manifest_bytes)):
        if cut in boundaries:
            continue
        data = bytearray(manifest_bytes[:cut])
        struct.pack_into("<I", data, 4, cut)
        with pytest.raises((TruncatedInputError, SizeMismatchError)):
            decode(bytes(data))


def test_file_header_checks(manifest_bytes) -> None:
    with pytest.raises(TruncatedInputError):
        decode(b"\x03\x00\x08")
    with pytest.raises(BadMagicError) as exc:
        decode(b"\x03\x00\x09\x00" + manifest_bytes[4:])
    assert exc.value.offset == 0
    with pytest.raises(SizeMismatchError):
        decode(manifest_bytes + b"\x00" * 4)


def test_unknown_chunk_type(android_pool) -> None:
    unknown = struct.pack("<II", 0x00100105, 8)
    data = builders.axml(android_pool, unknown)
    with pytest.raises(UnknownChunkTypeError) as exc:
        decode(data)
    assert exc.value.offset == 8 + len(android_pool)


def test_arsc_chunk_is_not_skipped(android_pool) -> None:
    # a RES_TABLE_PACKAGE chunk does not belong into a XML file
    data = builders.axml(android_pool, struct.pack("<II", 0x01200200, 12) + b"\x00" * 4)
    with pytest.raises(UnknownChunkTypeError):
        decode(data)


def test_string_pool_must_come_first(android_pool) -> None:
    data = builders.axml(builders.namespace(builders.START_NS, 1, 0, 1), android_pool)
    with pytest.raises(ChunkSequenceError):
        decode(data)


def test_single_string_pool_and_resource_map(android_pool) -> None:
    with pytest.raises(ChunkSequenceError):
        decode(builders.axml(android_pool, android_pool))
    rmap = builders.resource_map([1])
    with pytest.raises(ChunkSequenceError):
        decode(builders.axml(android_pool, rmap, rmap))


def test_document_without_string_pool() -> None:
    with pytest.raises(ChunkSequenceError):
        decode(builders.axml())


def test_empty_document(android_pool) -> None:
    document = decode(builders.axml(android_pool))
    assert document.events == []
    assert list(document.string_pool) == builders.ANDROID_STRINGS


def test_parser_stops_after_error(android_pool) -> None:
    data = builders.axml(
        android_pool,
        builders.namespace(builders.START_NS, 1, 0, 1),
        builders.start_tag(2, -1, 7),
        builders.end_tag(3, -1, 2),
    )
    parser = AXMLParser(data)
    assert isinstance(next(parser), NamespaceStart)
    with pytest.raises(IndexOutOfRangeError):
        next(parser)
    with pytest.raises(StopIteration):
        next(parser)


def test_errors_share_a_base(android_pool) -> None:
    with pytest.raises(ResParserError) as exc:
        decode(builders.axml(android_pool, struct.pack("<II", 0xDEADBEEF, 8)))
    assert "Offset=0x" in str(exc.value)


def _shrunk(chunk: bytes, size: int) -> bytes:
    short = bytearray(chunk[:size])
    struct.pack_into("<I", short, 4, size)
    return bytes(short)


@pytest.mark.parametrize(
    "chunk, size",
    [
        (builders.namespace(builders.START_NS, 1, 0, 1), 12),
        (builders.namespace(builders.START_NS, 1, 0, 1), 16),
        (builders.namespace(builders.END_NS, 1, 0, 1), 20),
        (builders.start_tag(2, -1, 2), 24),
        (builders.start_tag(2, -1, 2), 32),
        (builders.end_tag(3, -1, 2), 16),
        (builders.end_tag(3, -1, 2), 20),
        (builders.text(4, 2), 20),
        (builders.text(4, 2), 24),
    ],
)
def test_undersized_node_chunk_followed_by_chunk(android_pool, chunk, size) -> None:
    following = builders.start_tag(5, -1, 2)
    data = builders.axml(android_pool, _shrunk(chunk, size), following)
    chunk_start = 8 + len(android_pool)
    with pytest.raises(SizeMismatchError) as exc:
        decode(data)
    assert exc.value.offset == chunk_start + 4


def test_undersized_string_pool_followed_by_chunk(android_pool) -> None:
    data = builders.axml(
        _shrunk(android_pool, 20), builders.namespace(builders.START_NS, 1, 0, 1)
    )
    with pytest.raises(SizeMismatchError) as exc:
        decode(data)
    assert exc.value.offset == 12


def test_string_data_is_read_inside_its_chunk(android_pool) -> None:
    # the last string loses its terminator, the next chunk must not supply one
    data = builders.axml(
        _shrunk(android_pool, len(android_pool) - 4),
        builders.namespace(builders.START_NS, 1, 0, 1),
    )
    with pytest.raises(ResParserError) as exc:
        decode(data)
    assert exc.value.offset < 8 + len(android_pool) - 4
