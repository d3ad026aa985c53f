"""Create, complete, edit and delete reminders through records/modify.

Writes to existing records carry the cached ``recordChangeTag``; CloudKit
rejects them if the record changed since. Every accepted write is echoed
into the cache so the next command sees it without a sync.
"""

from __future__ import annotations

import logging
from typing import Any

from reminders_cli.api.client import CloudKitClientProtocol
from reminders_cli.api.models import ModifyRecordsResponse, Record
from reminders_cli.codec import encode_document
from reminders_cli.exceptions import (
    InvalidInputError,
    NotFoundError,
    RecordRejectedError,
    StaleCacheError,
    TransportError,
)
from reminders_cli.models.reminder import parse_priority
from reminders_cli.services.record_cache import ReminderData
from reminders_cli.services.sync_service import REMINDER_RECORD_TYPE, SyncEngine
from reminders_cli.utils.dates import now_ms, str_to_ts, ts_to_str
from reminders_cli.utils.uuid_utils import new_record_name

logger = logging.getLogger(__name__)


def _reference(record_name: str) -> dict[str, Any]:
    return {"value": {"recordName": record_name, "action": "NONE"}}


def _due_ts(due: str) -> int:
    try:
        return str_to_ts(due)
    except ValueError:
        raise InvalidInputError(f"Invalid due date '{due}' (expected YYYY-MM-DD)") from None


def build_create_op(
    title: str,
    list_id: str = "",
    parent_id: str = "",
    due: str = "",
    priority: int = 0,
    notes: str = "",
) -> tuple[Record, str]:
    """Build a create operation for a new reminder.

    Returns:
        (operation, record_name)
    """
    record_name = new_record_name()
    fields: dict[str, Any] = {
        "TitleDocument": {"value": encode_document(title)},
        "Completed": {"value": 0},
    }
    if list_id:
        fields["List"] = _reference(list_id)
    if parent_id:
        fields["ParentReminder"] = _reference(parent_id)
    if due:
        fields["DueDate"] = {"value": _due_ts(due)}
    if priority:
        fields["Priority"] = {"value": priority}
    if notes:
        fields["NotesDocument"] = {"value": encode_document(notes)}

    op = {
        "operationType": "create",
        "record": {
            "recordType": REMINDER_RECORD_TYPE,
            "recordName": record_name,
            "fields": fields,
        },
    }
    return op, record_name


def check_response(response: ModifyRecordsResponse) -> None:
    """Raise for request failures and in-band record errors."""
    if response.error:
        raise TransportError(response.error)
    record_error = response.first_record_error()
    if record_error:
        raise RecordRejectedError(*record_error)


class Writer:
    """Applies mutations and keeps the sync engine's cache consistent."""

    def __init__(self, client: CloudKitClientProtocol, engine: SyncEngine):
        self.client = client
        self.engine = engine

    @property
    def cache(self):
        return self.engine.cache

    async def _owner_id(self) -> str:
        data = self.cache.data
        if not data.owner_id:
            data.owner_id = await self.client.get_owner_id()
        return data.owner_id

    def _save_cache(self) -> None:
        try:
            self.cache.save()
        except OSError as e:
            logger.warning("Cache save failed: %s", e)

    def _resolve_targets(self, list_name: str | None, parent_id: str | None) -> tuple[str, str]:
        list_id = ""
        if list_name:
            list_id = self.engine.find_list_by_name(list_name)
            if not list_id:
                raise NotFoundError(f"List '{list_name}' not found")

        parent_ref = ""
        if parent_id:
            parent_ref = self.engine.find_reminder_by_id(parent_id)
            if not parent_ref:
                raise NotFoundError(f"Parent reminder '{parent_id}' not found")
            if not list_id:
                parent = self.cache.data.reminders.get(parent_ref)
                if parent and parent.list_ref:
                    list_id = parent.list_ref
        return list_id, parent_ref

    def _resolve_existing(self, reminder_id: str) -> tuple[str, ReminderData, str]:
        full_id = self.engine.find_reminder_by_id(reminder_id)
        if not full_id:
            raise NotFoundError(f"Reminder '{reminder_id}' not found")
        record = self.cache.data.reminders[full_id]
        if not record.change_tag:
            raise StaleCacheError(reminder_id)
        return full_id, record, record.change_tag

    async def create(
        self,
        title: str,
        list_name: str | None = None,
        due: str | None = None,
        priority: str | None = None,
        notes: str | None = None,
        parent_id: str | None = None,
    ) -> str:
        """Create one reminder; returns its record name."""
        list_id, parent_ref = self._resolve_targets(list_name, parent_id)
        priority_value = parse_priority(priority)
        op, record_name = build_create_op(
            title, list_id, parent_ref, due or "", priority_value, notes or ""
        )

        owner_id = await self._owner_id()
        logger.debug("add: creating record %s in list %s", record_name, list_id)
        response = await self.client.modify_records(owner_id, [op])
        check_response(response)

        self.cache.data.reminders[record_name] = ReminderData(
            title=title,
            due=due or "",
            priority=priority_value,
            notes=notes or "",
            list_ref=list_id or None,
            parent_ref=parent_ref or None,
            modified_ts=now_ms(),
            change_tag=response.change_tag() or None,
        )
        self._save_cache()
        logger.info("Created reminder: %r in %s", title, list_name or "default list")
        return record_name

    async def create_batch(
        self,
        titles: list[str],
        list_name: str | None = None,
        parent_id: str | None = None,
    ) -> list[str]:
        """Create several reminders in one atomic request.

        The cached entries carry no change tag, so completing or deleting
        them needs a sync first.
        """
        if not titles:
            raise InvalidInputError("No titles provided")
        list_id, parent_ref = self._resolve_targets(list_name, parent_id)

        ops = []
        created: list[tuple[str, str]] = []
        for title in titles:
            op, record_name = build_create_op(title, list_id, parent_ref)
            ops.append(op)
            created.append((record_name, title))

        owner_id = await self._owner_id()
        logger.debug("add-batch: creating %d records in list %s", len(ops), list_id)
        response = await self.client.modify_records(owner_id, ops)
        check_response(response)

        now = now_ms()
        for record_name, title in created:
            self.cache.data.reminders[record_name] = ReminderData(
                title=title,
                list_ref=list_id or None,
                parent_ref=parent_ref or None,
                modified_ts=now,
            )
        self._save_cache()
        logger.info("Created %d reminders in %s", len(created), list_name or "default list")
        return [record_name for record_name, _ in created]

    async def complete(self, reminder_id: str) -> str:
        """Mark a reminder completed; returns its record name."""
        full_id, record, change_tag = self._resolve_existing(reminder_id)

        now = now_ms()
        op = {
            "operationType": "update",
            "record": {
                "recordType": REMINDER_RECORD_TYPE,
                "recordName": full_id,
                "recordChangeTag": change_tag,
                "fields": {
                    "Completed": {"value": True},
                    "CompletionDate": {"value": now},
                },
            },
        }

        owner_id = await self._owner_id()
        logger.debug("complete: updating record %s", full_id)
        response = await self.client.modify_records(owner_id, [op])
        check_response(response)

        record.completed = True
        record.completion_date = ts_to_str(now)
        record.change_tag = response.change_tag() or record.change_tag
        self._save_cache()
        logger.info("Completed reminder: %r (%s)", record.title, reminder_id)
        return full_id

    async def edit(
        self,
        reminder_id: str,
        title: str | None = None,
        due: str | None = None,
        notes: str | None = None,
        priority: str | None = None,
    ) -> str:
        """Change only the given fields of a reminder; returns its record name."""
        if title is None and due is None and notes is None and priority is None:
            raise InvalidInputError("Nothing to change: pass a title, due date, notes or priority")

        full_id, record, change_tag = self._resolve_existing(reminder_id)

        fields: dict[str, Any] = {}
        if title is not None:
            fields["TitleDocument"] = {"value": encode_document(title)}
        if due is not None:
            fields["DueDate"] = {"value": _due_ts(due) if due else None}
        if notes is not None:
            fields["NotesDocument"] = {"value": encode_document(notes)}
        priority_value = parse_priority(priority) if priority is not None else None
        if priority_value is not None:
            fields["Priority"] = {"value": priority_value}

        op = {
            "operationType": "update",
            "record": {
                "recordType": REMINDER_RECORD_TYPE,
                "recordName": full_id,
                "recordChangeTag": change_tag,
                "fields": fields,
            },
        }

        owner_id = await self._owner_id()
        logger.debug("edit: updating %s on %s", ", ".join(fields), full_id)
        response = await self.client.modify_records(owner_id, [op])
        check_response(response)

        if title is not None:
            record.title = title
        if due is not None:
            record.due = due
        if notes is not None:
            record.notes = notes
        if priority_value is not None:
            record.priority = priority_value
        record.modified_ts = now_ms()
        record.change_tag = response.change_tag() or record.change_tag
        self._save_cache()
        logger.info("Updated reminder: %r (%s)", record.title, reminder_id)
        return full_id

    async def delete(self, reminder_id: str) -> str:
        """Delete a reminder; returns its record name."""
        full_id, record, change_tag = self._resolve_existing(reminder_id)

        op = {
            "operationType": "delete",
            "record": {"recordName": full_id, "recordChangeTag": change_tag},
        }

        owner_id = await self._owner_id()
        logger.debug("delete: removing record %s", full_id)
        response = await self.client.modify_records(owner_id, [op])
        check_response(response)

        del self.cache.data.reminders[full_id]
        self._save_cache()
        logger.info("Deleted reminder: %r (%s)", record.title, reminder_id)
        return full_id
