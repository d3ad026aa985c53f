"""Delta sync of the Reminders zone into the local record cache."""

from __future__ import annotations

import logging
from typing import Any

from reminders_cli.api.client import CloudKitClientProtocol
from reminders_cli.api.models import Record
from reminders_cli.codec import decode_document
from reminders_cli.models.reminder import UNKNOWN_LIST, Reminder, ReminderList
from reminders_cli.services.record_cache import RecordCache, ReminderData
from reminders_cli.utils.dates import ts_to_str
from reminders_cli.utils.uuid_utils import matches_prefix

logger = logging.getLogger(__name__)

LIST_RECORD_TYPES = ("ReminderList", "List")
REMINDER_RECORD_TYPE = "Reminder"
UNTITLED = "(untitled)"


def field_value(fields: dict[str, Any], key: str) -> Any:
    field = fields.get(key)
    if isinstance(field, dict):
        return field.get("value")
    return None


def field_str(fields: dict[str, Any], key: str) -> str:
    value = field_value(fields, key)
    return value if isinstance(value, str) else ""


def field_int(fields: dict[str, Any], key: str) -> int:
    value = field_value(fields, key)
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return int(value)
    return 0


def field_ref(fields: dict[str, Any], key: str) -> str:
    """recordName of a reference field, or empty string."""
    value = field_value(fields, key)
    if isinstance(value, dict):
        name = value.get("recordName")
        return name if isinstance(name, str) else ""
    return ""


class SyncEngine:
    """Keeps a RecordCache in step with CloudKit."""

    def __init__(self, client: CloudKitClientProtocol, cache: RecordCache):
        self.client = client
        self.cache = cache

    async def sync(self, force: bool = False) -> None:
        """Fetch changes since the stored sync token and persist the cache.

        With ``force`` the whole cache is discarded first, so the next
        fetch starts from scratch.
        """
        if force:
            self.cache.reset()
            logger.info("Full sync (forced)...")
        elif self.cache.data.sync_token:
            logger.info("Delta sync...")
        else:
            logger.info("Full sync (first run)...")

        data = self.cache.data
        if not data.owner_id:
            data.owner_id = await self.client.get_owner_id()

        page = 0
        while True:
            page += 1
            response = await self.client.changes_zone(data.owner_id, data.sync_token)
            if not response.zones:
                break
            zone = response.zones[0]

            if zone.records:
                logger.debug("Page %d: +%d records", page, len(zone.records))
                self.fold_records(zone.records)
            if zone.sync_token:
                data.sync_token = zone.sync_token
            if not zone.records or not zone.more_coming:
                break

        self.cache.save()

        active = sum(1 for r in data.reminders.values() if not r.completed)
        logger.info(
            "Synced: %d reminders (%d active), %d lists",
            len(data.reminders),
            active,
            len(data.lists),
        )

    def fold_records(self, records: list[Record]) -> None:
        """Apply a page of records to the cache; later records win."""
        for record in records:
            if isinstance(record, dict):
                self._fold_record(record)

    def _fold_record(self, record: Record) -> None:
        data = self.cache.data
        name = record.get("recordName")
        if not isinstance(name, str) or not name:
            return
        record_type = record.get("recordType")
        fields = record.get("fields")
        if not isinstance(fields, dict):
            fields = {}
        deleted = bool(record.get("deleted")) or field_int(fields, "Deleted") != 0

        if record_type in LIST_RECORD_TYPES:
            if deleted:
                data.lists.pop(name, None)
                return
            title = field_str(fields, "Name") or decode_document(
                field_str(fields, "TitleDocument")
            )
            if title:
                data.lists[name] = title

        elif record_type == REMINDER_RECORD_TYPE:
            if deleted:
                data.reminders.pop(name, None)
                return
            modified = record.get("modified")
            modified_ts = modified.get("timestamp") if isinstance(modified, dict) else 0
            data.reminders[name] = ReminderData(
                title=decode_document(field_str(fields, "TitleDocument")) or UNTITLED,
                completed=field_int(fields, "Completed") != 0,
                completion_date=ts_to_str(field_int(fields, "CompletionDate")),
                due=ts_to_str(field_int(fields, "DueDate")),
                priority=field_int(fields, "Priority"),
                notes=decode_document(field_str(fields, "NotesDocument")),
                list_ref=field_ref(fields, "List") or None,
                parent_ref=field_ref(fields, "ParentReminder") or None,
                modified_ts=int(modified_ts or 0),
                change_tag=record.get("recordChangeTag") or None,
            )

    def get_reminders(self, include_completed: bool = False) -> list[Reminder]:
        data = self.cache.data
        result = []
        for rid, r in data.reminders.items():
            if r.completed and not include_completed:
                continue
            list_name = data.lists.get(r.list_ref, UNKNOWN_LIST) if r.list_ref else UNKNOWN_LIST
            result.append(
                Reminder(
                    id=rid,
                    title=r.title,
                    completed=r.completed,
                    completion_date=r.completion_date,
                    due=r.due,
                    priority=r.priority,
                    notes=r.notes,
                    list_id=r.list_ref,
                    list_name=list_name,
                    parent_id=r.parent_ref,
                )
            )
        return result

    def get_lists(self) -> list[ReminderList]:
        return [ReminderList(id=lid, name=name) for lid, name in self.cache.data.lists.items()]

    def find_list_by_name(self, name: str) -> str:
        """Record name of the list called ``name`` (case-insensitive), or ""."""
        wanted = name.lower()
        for lid, list_name in self.cache.data.lists.items():
            if list_name.lower() == wanted:
                return lid
        return ""

    def find_reminder_by_id(self, partial: str) -> str:
        """Full record name for a short-id prefix, or "".

        The first match wins; ambiguous prefixes are not reported.
        """
        if not partial:
            return ""
        for rid in self.cache.data.reminders:
            if matches_prefix(rid, partial):
                return rid
        return ""
