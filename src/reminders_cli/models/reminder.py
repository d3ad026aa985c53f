"""Reminder and list view models."""

from __future__ import annotations

from pydantic import BaseModel

from reminders_cli.exceptions import InvalidInputError
from reminders_cli.utils.uuid_utils import short_id

PRIORITY_MAP = {"high": 1, "medium": 5, "low": 9, "none": 0}
PRIORITY_LABELS = {value: name for name, value in PRIORITY_MAP.items()}

UNKNOWN_LIST = "?"


def parse_priority(value: str | None) -> int:
    """Translate a priority name into CloudKit's numeric value.

    Raises:
        InvalidInputError: For names other than high/medium/low/none
    """
    if not value:
        return 0
    try:
        return PRIORITY_MAP[value.strip().lower()]
    except KeyError:
        raise InvalidInputError(
            f"Invalid priority '{value}' (use high, medium, low or none)"
        ) from None


class Reminder(BaseModel):
    """A cached reminder as shown to users.

    Attributes:
        id: Full CloudKit record name
        title: Decoded title text
        completed: Whether the reminder is done
        completion_date: YYYY-MM-DD, empty if not completed
        due: YYYY-MM-DD, empty if no due date
        priority: 0 none, 1 high, 5 medium, 9 low
        notes: Decoded notes text
        list_id: Record name of the owning list
        list_name: Resolved list name, "?" when the list is unknown
        parent_id: Record name of the parent reminder, if a subtask
    """

    id: str
    title: str
    completed: bool = False
    completion_date: str = ""
    due: str = ""
    priority: int = 0
    notes: str = ""
    list_id: str | None = None
    list_name: str = UNKNOWN_LIST
    parent_id: str | None = None

    @property
    def short_id(self) -> str:
        return short_id(self.id)

    @property
    def priority_label(self) -> str:
        return PRIORITY_LABELS.get(self.priority, "") if self.priority else ""


class ReminderList(BaseModel):
    id: str
    name: str

    @property
    def short_id(self) -> str:
        return short_id(self.id)
