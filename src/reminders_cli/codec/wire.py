"""Minimal protobuf wire-format primitives.

Only the two wire types the title document uses are supported:
varint (0) and length-delimited (2).
"""

from __future__ import annotations

WIRE_VARINT = 0
WIRE_LENGTH_DELIMITED = 2

# Offset value meaning "no position"; written as unsigned 32-bit -1.
SENTINEL_OFFSET = 0xFFFFFFFF


def encode_varint(value: int) -> bytes:
    """Encode a non-negative integer as a base-128 varint."""
    if value < 0:
        raise ValueError(f"varint must be non-negative, got {value}")
    out = bytearray()
    while value > 0x7F:
        out.append((value & 0x7F) | 0x80)
        value >>= 7
    out.append(value)
    return bytes(out)


def decode_varint(data: bytes, pos: int = 0) -> tuple[int, int]:
    """Decode a varint starting at ``pos``.

    Returns:
        (value, position after the varint)
    """
    result = 0
    shift = 0
    while True:
        if pos >= len(data):
            raise ValueError("truncated varint")
        byte = data[pos]
        pos += 1
        result |= (byte & 0x7F) << shift
        if not byte & 0x80:
            return result, pos
        shift += 7


def encode_tag(field_number: int, wire_type: int) -> bytes:
    return encode_varint((field_number << 3) | wire_type)


def varint_field(field_number: int, value: int) -> bytes:
    return encode_tag(field_number, WIRE_VARINT) + encode_varint(value)


def bytes_field(field_number: int, payload: bytes) -> bytes:
    return (
        encode_tag(field_number, WIRE_LENGTH_DELIMITED)
        + encode_varint(len(payload))
        + payload
    )


def iter_fields(data: bytes):
    """Yield (field_number, wire_type, value) for each top-level field.

    Varint values are ints, length-delimited values are bytes. Used for
    inspecting documents, not for decoding titles.
    """
    pos = 0
    while pos < len(data):
        key, pos = decode_varint(data, pos)
        field_number, wire_type = key >> 3, key & 0x07
        if wire_type == WIRE_VARINT:
            value, pos = decode_varint(data, pos)
        elif wire_type == WIRE_LENGTH_DELIMITED:
            length, pos = decode_varint(data, pos)
            if pos + length > len(data):
                raise ValueError("truncated length-delimited field")
            value = data[pos : pos + length]
            pos += length
        else:
            raise ValueError(f"unsupported wire type {wire_type}")
        yield field_number, wire_type, value
