"""Command 'complete' of the reminders CLI."""

from typing import Annotated

import typer

from reminders_cli.utils.ui.formatters import format_success

from .decorators import command_wrapper
from .runtime import open_runtime


@command_wrapper
async def complete_command(
    reminder_id: Annotated[str, typer.Argument(help="Reminder ID or prefix")],
) -> None:
    """Mark a reminder as completed."""
    async with open_runtime() as rt:
        await rt.writer.complete(reminder_id)
    format_success(f"Completed: {reminder_id}")
