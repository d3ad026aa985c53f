"""On-disk record cache (ck_cache.json).

Holds every reminder and list seen through sync or written locally, plus
the sync token and owner id. Losing the file forces a full resync; losing
change tags blocks writes until the next sync.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)


class ReminderData(BaseModel):
    """Snapshot of one reminder record."""

    title: str = ""
    completed: bool = False
    completion_date: str = ""
    due: str = ""
    priority: int = 0
    notes: str = ""
    list_ref: str | None = None
    parent_ref: str | None = None
    modified_ts: int = 0
    change_tag: str | None = None


class CacheData(BaseModel):
    reminders: dict[str, ReminderData] = Field(default_factory=dict)
    lists: dict[str, str] = Field(default_factory=dict)
    sync_token: str | None = None
    owner_id: str | None = None
    updated_at: str = ""


class RecordCache:
    """Loads and saves CacheData.

    ``data`` is replaced wholesale by ``reset()``; callers should always go
    through ``cache.data`` rather than holding on to the object.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self.data = self._load()

    def _load(self) -> CacheData:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return CacheData()
        except OSError as e:
            logger.warning("Could not read cache %s: %s", self.path, e)
            return CacheData()

        try:
            return CacheData.model_validate(json.loads(raw))
        except (ValueError, ValidationError) as e:
            logger.warning("Ignoring corrupt cache %s: %s", self.path, e)
            return CacheData()

    def reset(self) -> None:
        """Drop every record, the sync token and the owner id."""
        self.data = CacheData()

    def save(self) -> None:
        """Stamp updated_at and rewrite the file, owner-readable only."""
        self.data.updated_at = datetime.now(UTC).isoformat(timespec="seconds")
        self.path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
        self.path.write_text(self.data.model_dump_json(indent=2), encoding="utf-8")
        self.path.chmod(0o600)
        logger.debug("Cache saved to %s", self.path)
