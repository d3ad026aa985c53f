"""Read-only commands: list, lists, search and json."""

from collections import Counter
from typing import Annotated

import typer

from reminders_cli.exceptions import NotFoundError
from reminders_cli.utils.ui.formatters import format_json, format_lists, format_reminders

from .decorators import command_wrapper
from .runtime import open_runtime


@command_wrapper
async def list_command(
    list_name: Annotated[
        str | None, typer.Option("--list", "-l", help="Filter by list name")
    ] = None,
    parent: Annotated[
        str | None, typer.Option("--parent", help="Show only subtasks of this reminder ID")
    ] = None,
    show_all: Annotated[
        bool, typer.Option("--all", "-a", help="Include completed reminders")
    ] = False,
) -> None:
    """Show reminders grouped by list."""
    async with open_runtime() as rt:
        engine = rt.engine
        reminders = engine.get_reminders(include_completed=show_all)

        if list_name:
            list_id = engine.find_list_by_name(list_name)
            if not list_id:
                raise NotFoundError(f"List '{list_name}' not found")
            reminders = [r for r in reminders if r.list_id == list_id]

        if parent:
            parent_id = engine.find_reminder_by_id(parent)
            if not parent_id:
                raise NotFoundError(f"Reminder '{parent}' not found")
            reminders = [r for r in reminders if r.parent_id == parent_id]

        format_reminders(reminders)


@command_wrapper
async def lists_command() -> None:
    """Show all reminder lists."""
    async with open_runtime() as rt:
        counts = Counter(r.list_id for r in rt.engine.get_reminders() if r.list_id)
        format_lists(rt.engine.get_lists(), counts)


@command_wrapper
async def search_command(
    query: Annotated[str, typer.Argument(help="Text to look for in titles and notes")],
    show_all: Annotated[
        bool, typer.Option("--all", "-a", help="Include completed reminders")
    ] = False,
) -> None:
    """Find reminders whose title or notes contain QUERY."""
    needle = query.lower()
    async with open_runtime() as rt:
        matches = [
            r
            for r in rt.engine.get_reminders(include_completed=show_all)
            if needle in r.title.lower() or needle in r.notes.lower()
        ]
        format_reminders(matches, group_by_list=False)


@command_wrapper
async def json_command() -> None:
    """Print lists, active and completed reminders as JSON."""
    async with open_runtime() as rt:
        reminders = rt.engine.get_reminders(include_completed=True)
        format_json(
            {
                "lists": [item.model_dump() for item in rt.engine.get_lists()],
                "active": [r.model_dump() for r in reminders if not r.completed],
                "completed": [r.model_dump() for r in reminders if r.completed],
            }
        )
