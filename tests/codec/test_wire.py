"""Tests for the protobuf wire primitives."""

from __future__ import annotations

import pytest

from reminders_cli.codec.wire import (
    SENTINEL_OFFSET,
    WIRE_LENGTH_DELIMITED,
    WIRE_VARINT,
    bytes_field,
    decode_varint,
    encode_tag,
    encode_varint,
    iter_fields,
    varint_field,
)


class TestVarint:
    @pytest.mark.parametrize(
        "value, encoded",
        [
            (0, b"\x00"),
            (1, b"\x01"),
            (127, b"\x7f"),
            (128, b"\x80\x01"),
            (300, b"\xac\x02"),
        ],
    )
    def test_known_encodings(self, value, encoded):
        assert encode_varint(value) == encoded
        assert decode_varint(encoded) == (value, len(encoded))

    def test_sentinel_is_five_bytes(self):
        encoded = encode_varint(SENTINEL_OFFSET)
        assert encoded == b"\xff\xff\xff\xff\x0f"
        assert decode_varint(encoded)[0] == 0xFFFFFFFF

    def test_negative_rejected(self):
        with pytest.raises(ValueError):
            encode_varint(-1)

    def test_truncated_varint(self):
        with pytest.raises(ValueError, match="truncated"):
            decode_varint(b"\x80")

    def test_decode_from_offset(self):
        value, pos = decode_varint(b"\x00\xac\x02\x05", 1)
        assert value == 300
        assert pos == 3


class TestFields:
    def test_tag_packs_field_and_wire_type(self):
        assert encode_tag(1, WIRE_VARINT) == b"\x08"
        assert encode_tag(2, WIRE_LENGTH_DELIMITED) == b"\x12"

    def test_iter_fields(self):
        data = varint_field(1, 150) + bytes_field(2, b"hi") + varint_field(3, 0)
        assert list(iter_fields(data)) == [
            (1, WIRE_VARINT, 150),
            (2, WIRE_LENGTH_DELIMITED, b"hi"),
            (3, WIRE_VARINT, 0),
        ]

    def test_iter_fields_rejects_truncated_payload(self):
        with pytest.raises(ValueError):
            list(iter_fields(b"\x12\x05ab"))

    def test_iter_fields_rejects_unknown_wire_type(self):
        with pytest.raises(ValueError, match="wire type"):
            list(iter_fields(b"\x0d\x00\x00\x00\x00"))
