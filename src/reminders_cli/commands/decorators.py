"""Decorators for command functions."""

import asyncio
import inspect
import functools
import time
import traceback
from collections.abc import Callable

import typer

from reminders_cli.exceptions import RemindersError
from reminders_cli.utils.exit_codes import get_exit_code_name
from reminders_cli.utils.logger import get_logger
from reminders_cli.utils.ui.formatters import format_error


def command_wrapper(func: Callable):
    """Run a (possibly async) command and turn failures into exit codes."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = get_logger()
        cmd = func.__name__
        start = time.monotonic()
        logger.info("command started: %s", cmd)
        try:
            if inspect.iscoroutinefunction(func):
                result = asyncio.run(func(*args, **kwargs))
            else:
                result = func(*args, **kwargs)

            logger.info("command completed: %s (%.3fs)", cmd, time.monotonic() - start)
            return result

        except RemindersError as e:
            logger.error(
                "command failed: %s (%.3fs) [%s] - %s",
                cmd,
                time.monotonic() - start,
                get_exit_code_name(e.exit_code),
                e,
            )
            format_error(str(e))
            raise typer.Exit(code=e.exit_code) from e

        except typer.Exit:
            raise

        except Exception as e:
            logger.error(
                "command failed: %s (%.3fs) - %s\n%s",
                cmd,
                time.monotonic() - start,
                e,
                traceback.format_exc(),
            )
            format_error(f"An unexpected error occurred: {e}")
            raise typer.Exit(code=1) from e

    return wrapper
