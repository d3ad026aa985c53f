"""Commands 'add' and 'add-batch' of the reminders CLI."""

from typing import Annotated

import typer

from reminders_cli.utils.ui.formatters import format_success, format_warning
from reminders_cli.utils.uuid_utils import short_id

from .decorators import command_wrapper
from .runtime import open_runtime


@command_wrapper
async def add_command(
    title: Annotated[str, typer.Argument(help="Reminder title")],
    list_name: Annotated[str | None, typer.Option("--list", "-l", help="List name")] = None,
    due: Annotated[
        str | None, typer.Option("--due", "-d", help="Due date (YYYY-MM-DD)")
    ] = None,
    priority: Annotated[
        str | None, typer.Option("--priority", "-p", help="Priority (high, medium, low)")
    ] = None,
    notes: Annotated[str | None, typer.Option("--notes", "-n", help="Notes")] = None,
    parent: Annotated[
        str | None, typer.Option("--parent", help="Parent reminder ID (creates a subtask)")
    ] = None,
) -> None:
    """Add a reminder."""
    async with open_runtime() as rt:
        record_name = await rt.writer.create(
            title,
            list_name=list_name,
            due=due,
            priority=priority,
            notes=notes,
            parent_id=parent,
        )
    format_success(f"Added: {title} ({short_id(record_name)})")


@command_wrapper
async def add_batch_command(
    titles: Annotated[list[str], typer.Argument(help="Reminder titles")],
    list_name: Annotated[str | None, typer.Option("--list", "-l", help="List name")] = None,
    parent: Annotated[
        str | None, typer.Option("--parent", help="Parent reminder ID (creates subtasks)")
    ] = None,
) -> None:
    """Add several reminders in one request."""
    async with open_runtime() as rt:
        created = await rt.writer.create_batch(titles, list_name=list_name, parent_id=parent)
    format_success(f"Added {len(created)} reminders")
    format_warning("Run 'sync' before completing, editing or deleting them")
