"""CRDT document codec for reminder titles and notes."""

from .document import decode_document, encode_document

__all__ = ["decode_document", "encode_document"]
