"""Command 'delete' of the reminders CLI."""

from typing import Annotated

import typer

from reminders_cli.utils.ui.formatters import format_success

from .decorators import command_wrapper
from .runtime import open_runtime


@command_wrapper
async def delete_command(
    reminder_id: Annotated[str, typer.Argument(help="Reminder ID or prefix")],
) -> None:
    """Delete a reminder."""
    async with open_runtime() as rt:
        await rt.writer.delete(reminder_id)
    format_success(f"Deleted: {reminder_id}")
