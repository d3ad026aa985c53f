"""Command 'auth' of the reminders CLI."""

from typing import Annotated

import typer

from reminders_cli.config import get_config_service
from reminders_cli.utils.ui.formatters import format_success

from .decorators import command_wrapper
from .runtime import build_authenticator


@command_wrapper
async def auth_command(
    force: Annotated[
        bool, typer.Option("--force", help="Sign in again even if the saved session works")
    ] = False,
) -> None:
    """Sign in to iCloud and save the session."""
    config = get_config_service()
    session = await build_authenticator(config).ensure_session(force_reauth=force)
    format_success(f"Authenticated ({session.ck_base_url})")
