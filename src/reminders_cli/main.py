"""Main entry point for the reminders CLI."""

from typing import Annotated

import typer

from reminders_cli import __version__
from reminders_cli.commands import (
    add_command,
    auth_command,
    complete_command,
    delete_command,
    edit_command,
    list_command,
    sync_command,
)
from reminders_cli.utils.logger import set_verbosity
from reminders_cli.utils.ui.console import get_console

app = typer.Typer(
    name="reminders",
    help="Read and write iCloud Reminders from the command line",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    verbose: Annotated[
        int, typer.Option("--verbose", "-v", count=True, help="-v for info, -vv for debug")
    ] = 0,
) -> None:
    set_verbosity(verbose)


app.command("auth")(auth_command.auth_command)
app.command("sync")(sync_command.sync_command)
app.command("list")(list_command.list_command)
app.command("lists")(list_command.lists_command)
app.command("search")(list_command.search_command)
app.command("json")(list_command.json_command)
app.command("add")(add_command.add_command)
app.command("add-batch")(add_command.add_batch_command)
app.command("complete")(complete_command.complete_command)
app.command("delete")(delete_command.delete_command)
app.command("edit")(edit_command.edit_command)


@app.command()
def version() -> None:
    """Show version information."""
    get_console().print(f"[bold]reminders[/bold] version [cyan]{__version__}[/cyan]")


def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
