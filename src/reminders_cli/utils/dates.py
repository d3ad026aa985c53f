"""Conversions between CloudKit millisecond timestamps and YYYY-MM-DD dates."""

from __future__ import annotations

from datetime import UTC, datetime

DATE_FORMAT = "%Y-%m-%d"


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(datetime.now(UTC).timestamp() * 1000)


def ts_to_str(ts_ms: int | float | None) -> str:
    """Convert a millisecond timestamp to a UTC YYYY-MM-DD string.

    Returns an empty string for 0 or None.
    """
    if not ts_ms:
        return ""
    return datetime.fromtimestamp(ts_ms / 1000, tz=UTC).strftime(DATE_FORMAT)


def str_to_ts(date_str: str) -> int:
    """Convert a YYYY-MM-DD string to a millisecond timestamp at UTC midnight.

    Raises:
        ValueError: If the string is not a valid date
    """
    dt = datetime.strptime(date_str, DATE_FORMAT).replace(tzinfo=UTC)
    return int(dt.timestamp() * 1000)
