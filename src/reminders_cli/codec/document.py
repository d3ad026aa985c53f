"""TitleDocument / NotesDocument codec.

iCloud stores reminder titles and notes as a gzip-compressed, base64-encoded
CRDT document (a topotext-style protobuf). Encoding builds the one fixed
message shape that represents "this whole string was inserted at once".

Every CRDT length in the message is a character count, not a byte count;
using byte lengths produces a document that parses but renders corrupted in
the Reminders apps.
"""

from __future__ import annotations

import base64
import binascii
import gzip
import re
import zlib

from reminders_cli.codec.wire import (
    SENTINEL_OFFSET,
    WIRE_LENGTH_DELIMITED,
    bytes_field,
    encode_varint,
    iter_fields,
    varint_field,
)
from reminders_cli.utils.uuid_utils import new_document_uuid

_GZIP_MAGIC = b"\x1f\x8b"

# Runs of two or more characters outside C0/C1 controls. U+FFFD stands in for
# undecodable bytes and never belongs to the text.
_PRINTABLE_RUN = re.compile(r"[^\x00-\x1f\x7f-\x9f\ufffd]{2,}")


def _position(replica: int, offset: int | None) -> bytes:
    """CRDT position {1: replica, 2: offset}; ``None`` is the sentinel."""
    if offset is None:
        offset = SENTINEL_OFFSET
    return varint_field(1, replica) + varint_field(2, offset)


def _operation(
    replica: int, offset: int | None, length: int, sequence: int | None
) -> bytes:
    op = bytes_field(1, _position(replica, offset))
    op += varint_field(2, length)
    op += bytes_field(3, _position(replica, offset))
    if sequence is not None:
        op += varint_field(5, sequence)
    return op


def build_document(text: str, doc_uuid: bytes | None = None) -> bytes:
    """Build the uncompressed protobuf document for ``text``."""
    char_count = len(text)
    if doc_uuid is None:
        doc_uuid = new_document_uuid()

    start = _operation(replica=0, offset=0, length=0, sequence=1)
    insert = _operation(replica=1, offset=0, length=char_count, sequence=2)
    end = _operation(replica=0, offset=None, length=0, sequence=None)

    uuid_entry = (
        bytes_field(1, doc_uuid)
        + bytes_field(2, varint_field(1, char_count))  # clock
        + bytes_field(2, varint_field(1, 1))  # replica id stays 1; only the clock tracks char count
    )
    metadata = bytes_field(1, uuid_entry)
    attribute_run = varint_field(1, char_count)

    note = (
        bytes_field(2, text.encode("utf-8"))
        + bytes_field(3, start)
        + bytes_field(3, insert)
        + bytes_field(3, end)
        + bytes_field(4, metadata)
        + bytes_field(5, attribute_run)
    )
    document = varint_field(1, 0) + varint_field(2, 0) + bytes_field(3, note)
    return varint_field(1, 0) + bytes_field(2, document)


def encode_document(text: str) -> str:
    """Encode plain text as a base64 gzip CRDT document."""
    return base64.b64encode(gzip.compress(build_document(text))).decode("ascii")


def _strip_length_prefix(run: str) -> str:
    # The printable tail of the text's varint length can join the run.
    for width in range(1, 4):
        rest = run[width:]
        if len(rest) < 2:
            break
        if encode_varint(len(rest.encode("utf-8"))).endswith(run[:width].encode("utf-8")):
            return rest
    return run


def _note_text(payload: bytes) -> bytes | None:
    """Raw text field of the note, or None if the nesting is not the known one."""
    data = payload
    try:
        for wanted in (2, 3, 2):
            data = next(
                value
                for number, wire_type, value in iter_fields(data)
                if number == wanted and wire_type == WIRE_LENGTH_DELIMITED
            )
    except (ValueError, StopIteration):
        return None
    return data


def _first_run(text: str) -> str:
    match = _PRINTABLE_RUN.search(text)
    if match is None:
        return ""
    return _strip_length_prefix(match.group()).strip()


def decode_document(encoded: str | None) -> str:
    """Best-effort recovery of the text inside an encoded document.

    The note's text field is read directly when the document has the usual
    nesting. Otherwise the first run of two or more printable characters in
    the decompressed bytes is taken, minus any length prefix that joined it.
    Text shorter than two characters comes back empty. Never raises;
    undecodable input gives an empty string.
    """
    if not encoded:
        return ""
    try:
        raw = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError):
        return ""

    if not raw.startswith(_GZIP_MAGIC):
        return raw.decode("utf-8", errors="replace").strip()

    try:
        payload = gzip.decompress(raw)
    except (OSError, EOFError, zlib.error):
        return ""

    note_text = _note_text(payload)
    if note_text is not None:
        candidate = note_text.decode("utf-8", errors="replace").strip()
    else:
        candidate = _first_run(payload.decode("utf-8", errors="replace"))
    return candidate if len(candidate) >= 2 else ""
