"""Command 'sync' of the reminders CLI."""

from typing import Annotated

import typer

from reminders_cli.utils.ui.formatters import format_success

from .decorators import command_wrapper
from .runtime import open_runtime


@command_wrapper
async def sync_command(
    force: Annotated[
        bool, typer.Option("--force", help="Discard the cache and fetch everything")
    ] = False,
) -> None:
    """Fetch changes from iCloud into the local cache."""
    async with open_runtime(force_sync=force) as rt:
        data = rt.engine.cache.data
        active = sum(1 for r in data.reminders.values() if not r.completed)
        format_success(
            f"Synced {len(data.reminders)} reminders ({active} active), {len(data.lists)} lists"
        )
