"""Shared test fixtures and configuration.

Provides infrastructure to isolate tests from real filesystem/API state.
"""

from __future__ import annotations

import logging
from typing import Any
from unittest.mock import patch

import pytest

from reminders_cli.api.models import ChangesZoneResponse, ModifyRecordsResponse
from reminders_cli.codec import encode_document
from reminders_cli.services.record_cache import RecordCache
from reminders_cli.services.sync_service import SyncEngine

OWNER_ID = "_owner123"


# ---------------------------------------------------------------------------
# Isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def isolate_dirs(tmp_path, monkeypatch):
    """Keep config and log files inside tmp_path."""
    import reminders_cli.utils.logger as logger_mod
    from reminders_cli.config import get_config_service

    monkeypatch.setenv("ICLOUD_REMINDERS_CONFIG_DIR", str(tmp_path / "config"))
    monkeypatch.delenv("ICLOUD_USERNAME", raising=False)
    monkeypatch.delenv("ICLOUD_PASSWORD", raising=False)
    get_config_service.cache_clear()

    logger_mod._logger = None
    logger_mod._console_handler = None
    logging.getLogger("reminders_cli").handlers.clear()
    with patch("reminders_cli.utils.logger.user_log_dir", return_value=str(tmp_path / "logs")):
        yield

    logger_mod._logger = None
    logger_mod._console_handler = None
    logging.getLogger("reminders_cli").handlers.clear()
    get_config_service.cache_clear()


# ---------------------------------------------------------------------------
# Record builders
# ---------------------------------------------------------------------------


def list_record(name: str, title: str, **extra: Any) -> dict[str, Any]:
    record = {
        "recordName": name,
        "recordType": "ReminderList",
        "fields": {"Name": {"value": title}},
    }
    record.update(extra)
    return record


def reminder_record(
    name: str,
    title: str,
    *,
    list_ref: str | None = None,
    change_tag: str | None = "tag1",
    completed: int = 0,
    **fields: Any,
) -> dict[str, Any]:
    record_fields: dict[str, Any] = {
        "TitleDocument": {"value": encode_document(title)},
        "Completed": {"value": completed},
    }
    if list_ref:
        record_fields["List"] = {"value": {"recordName": list_ref, "action": "NONE"}}
    for key, value in fields.items():
        record_fields[key] = {"value": value}
    record: dict[str, Any] = {
        "recordName": name,
        "recordType": "Reminder",
        "fields": record_fields,
        "modified": {"timestamp": 1700000000000},
    }
    if change_tag:
        record["recordChangeTag"] = change_tag
    return record


def changes_page(records, *, sync_token: str | None = None, more: bool = False):
    zone: dict[str, Any] = {"records": records, "moreComing": more}
    if sync_token:
        zone["syncToken"] = sync_token
    return ChangesZoneResponse.model_validate({"zones": [zone]})


# ---------------------------------------------------------------------------
# Fake CloudKit client
# ---------------------------------------------------------------------------


class FakeCloudKit:
    """In-memory stand-in satisfying CloudKitClientProtocol.

    ``pages`` maps an incoming sync token (None for first run) to the page
    returned for it. ``modify_responses`` are returned in order; when empty,
    every operation succeeds with a fresh change tag.
    """

    def __init__(self, pages=None, modify_responses=None):
        self.pages: dict[str | None, ChangesZoneResponse] = pages or {}
        self.modify_responses: list[ModifyRecordsResponse] = list(modify_responses or [])
        self.owner_calls = 0
        self.changes_calls: list[str | None] = []
        self.modify_calls: list[list[dict]] = []

    async def get_owner_id(self) -> str:
        self.owner_calls += 1
        return OWNER_ID

    async def changes_zone(self, owner_id, sync_token=None):
        self.changes_calls.append(sync_token)
        return self.pages.get(sync_token, ChangesZoneResponse(zones=[]))

    async def modify_records(self, owner_id, operations):
        self.modify_calls.append(operations)
        if self.modify_responses:
            return self.modify_responses.pop(0)
        return ModifyRecordsResponse(
            records=[
                {
                    "recordName": op["record"]["recordName"],
                    "recordChangeTag": f"tag-{len(self.modify_calls)}",
                }
                for op in operations
            ]
        )


@pytest.fixture()
def fake_ck():
    return FakeCloudKit()


@pytest.fixture()
def cache(tmp_path):
    return RecordCache(tmp_path / "ck_cache.json")


@pytest.fixture()
def engine(fake_ck, cache):
    return SyncEngine(fake_ck, cache)
