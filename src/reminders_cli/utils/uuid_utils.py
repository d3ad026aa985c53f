"""Record name helpers.

CloudKit record names may carry a kind prefix ("Reminder/…", "List/…");
the short id shown to users is the trailing segment.
"""

from __future__ import annotations

import uuid


def new_record_name() -> str:
    """Generate a fresh upper-case UUID4 record name."""
    return str(uuid.uuid4()).upper()


def new_document_uuid() -> bytes:
    """Generate the 16 raw bytes of a random UUID4."""
    return uuid.uuid4().bytes


def short_id(record_name: str) -> str:
    """Strip any "Kind/" prefix from a record name.

    Args:
        record_name: Full CloudKit record name

    Returns:
        Trailing segment after the last slash
    """
    if not record_name:
        return ""
    return record_name.rsplit("/", 1)[-1]


def matches_prefix(record_name: str, partial: str) -> bool:
    """Case-insensitive prefix match against the short id."""
    return short_id(record_name).lower().startswith(partial.lower())
