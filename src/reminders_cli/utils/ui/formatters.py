"""Output formatting for reminders and lists."""

from __future__ import annotations

import json
from collections import defaultdict
from typing import Any

from rich.markup import escape
from rich.table import Table

from reminders_cli.models.reminder import Reminder, ReminderList
from reminders_cli.utils.ui.console import get_console

PRIORITY_STYLES = {1: "bold red", 5: "yellow", 9: "blue"}


def format_error(message: str) -> None:
    """Format and display an error message."""
    get_console().print(f"[bold red]Error:[/bold red] {escape(message)}")


def format_success(message: str) -> None:
    """Format and display a success message."""
    get_console().print(f"[bold green]✓[/bold green] {escape(message)}")


def format_warning(message: str) -> None:
    """Format and display a warning message."""
    get_console().print(f"[bold yellow]Warning:[/bold yellow] {escape(message)}")


def format_json(data: Any) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False, default=str))


def _sort_key(reminder: Reminder) -> tuple:
    return (reminder.completed, reminder.due or "9999-99-99", reminder.title.lower())


def format_reminder_line(reminder: Reminder) -> str:
    mark = "[green]✓[/green]" if reminder.completed else "○"
    line = f"{mark} {escape(reminder.title)}"
    if reminder.priority:
        style = PRIORITY_STYLES.get(reminder.priority, "")
        line += f" [{style}]!{reminder.priority_label}[/{style}]"
    if reminder.due:
        line += f" [dim]due {reminder.due}[/dim]"
    line += f" [dim]({reminder.short_id})[/dim]"
    return line


def format_reminders(reminders: list[Reminder], group_by_list: bool = True) -> None:
    """Print reminders, grouped under their list names.

    Subtasks are indented below their parent when the parent is shown.
    """
    console = get_console()
    if not reminders:
        console.print("[yellow]No reminders found[/yellow]")
        return

    shown = {r.id for r in reminders}
    children: dict[str, list[Reminder]] = defaultdict(list)
    roots: list[Reminder] = []
    for reminder in reminders:
        if reminder.parent_id and reminder.parent_id in shown:
            children[reminder.parent_id].append(reminder)
        else:
            roots.append(reminder)

    def emit(reminder: Reminder, depth: int) -> None:
        console.print("  " * (depth + 1) + format_reminder_line(reminder))
        for child in sorted(children.get(reminder.id, []), key=_sort_key):
            emit(child, depth + 1)

    if not group_by_list:
        for reminder in sorted(roots, key=_sort_key):
            emit(reminder, 0)
        return

    by_list: dict[str, list[Reminder]] = defaultdict(list)
    for reminder in roots:
        by_list[reminder.list_name].append(reminder)
    for list_name in sorted(by_list, key=str.lower):
        console.print(f"[bold cyan]{escape(list_name)}[/bold cyan]")
        for reminder in sorted(by_list[list_name], key=_sort_key):
            emit(reminder, 0)


def format_lists(lists: list[ReminderList], counts: dict[str, int]) -> None:
    console = get_console()
    if not lists:
        console.print("[yellow]No lists found[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Name")
    table.add_column("Active", justify="right")
    table.add_column("ID", style="dim")
    for item in sorted(lists, key=lambda l: l.name.lower()):
        table.add_row(escape(item.name), str(counts.get(item.id, 0)), item.short_id)
    console.print(table)
