"""Services module - cache, sync and write logic."""

from .record_cache import CacheData, RecordCache, ReminderData
from .sync_service import SyncEngine
from .writer import Writer

__all__ = [
    "CacheData",
    "RecordCache",
    "ReminderData",
    "SyncEngine",
    "Writer",
]
