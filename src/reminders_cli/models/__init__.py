"""Pydantic models for reminders and lists as presented to users."""

from .reminder import PRIORITY_LABELS, PRIORITY_MAP, Reminder, ReminderList, parse_priority

__all__ = [
    "PRIORITY_LABELS",
    "PRIORITY_MAP",
    "Reminder",
    "ReminderList",
    "parse_priority",
]
