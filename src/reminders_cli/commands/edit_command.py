"""Command 'edit' of the reminders CLI."""

from typing import Annotated

import typer

from reminders_cli.utils.ui.formatters import format_success

from .decorators import command_wrapper
from .runtime import open_runtime


@command_wrapper
async def edit_command(
    reminder_id: Annotated[str, typer.Argument(help="Reminder ID or prefix")],
    title: Annotated[str | None, typer.Option("--title", help="New title")] = None,
    due: Annotated[
        str | None, typer.Option("--due", "-d", help="New due date (YYYY-MM-DD)")
    ] = None,
    notes: Annotated[str | None, typer.Option("--notes", "-n", help="New notes")] = None,
    priority: Annotated[
        str | None,
        typer.Option("--priority", "-p", help="New priority (high, medium, low, none)"),
    ] = None,
) -> None:
    """Change the title, due date, notes or priority of a reminder.

    Only the given fields change.
    """
    async with open_runtime() as rt:
        await rt.writer.edit(reminder_id, title=title, due=due, notes=notes, priority=priority)
    format_success(f"Updated: {reminder_id}")
