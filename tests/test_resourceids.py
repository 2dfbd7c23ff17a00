"""Tests for the resource id table codec."""
from __future__ import annotations

import struct

import pytest

from apkaxml import (
    ByteCursor,
    ChunkHeader,
    ResourceIdTable,
    decode,
    decode_resource_ids,
    encode_resource_ids,
)
from apkaxml.errors import IndexOutOfRangeError, SizeMismatchError

import builders


def _decode(chunk: bytes) -> ResourceIdTable:
    cursor = ByteCursor(chunk)
    return decode_resource_ids(cursor, ChunkHeader.read(cursor))


@pytest.mark.parametrize(
    "ids",
    [[], [0x0101021B], [0x0101021B, 0x0101021C, 0x01010003, 0x7F010000]],
)
def test_round_trip(ids) -> None:
    table = ResourceIdTable(ids)
    encoded = encode_resource_ids(table)
    assert encoded == builders.resource_map(ids)
    assert _decode(encoded) == table


def test_count_excludes_header_words() -> None:
    table = _decode(struct.pack("<IIII", 0x00080180, 16, 7, 9))
    assert table.ids == [7, 9]


def test_size_is_recomputed_after_mutation() -> None:
    table = _decode(builders.resource_map([1, 2]))
    table.ids.append(3)
    encoded = table.encode()
    assert struct.unpack_from("<I", encoded, 4)[0] == 8 + 4 * 3
    assert _decode(encoded).ids == [1, 2, 3]


def test_size_not_multiple_of_four() -> None:
    chunk = struct.pack("<II", 0x00080180, 13) + b"\x00" * 5
    with pytest.raises(SizeMismatchError) as exc:
        _decode(chunk)
    assert exc.value.offset == 4


def test_size_not_multiple_of_four_in_document(android_pool) -> None:
    chunk = struct.pack("<II", 0x00080180, 13) + b"\x00" * 5
    data = builders.axml(android_pool, chunk)
    with pytest.raises(SizeMismatchError):
        decode(data)


def test_lookup_out_of_range() -> None:
    table = ResourceIdTable([0x0101021B])
    assert table[0] == 0x0101021B
    with pytest.raises(IndexOutOfRangeError):
        table[1]
