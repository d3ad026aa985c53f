"""Tests for the CLI entry point."""

from __future__ import annotations

import pytest
from typer.testing import CliRunner

from reminders_cli import __version__
from reminders_cli.main import app

runner = CliRunner()


def test_help_lists_commands():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    for command in ("auth", "sync", "list", "lists", "search", "add", "add-batch", "complete", "delete", "edit", "json"):
        assert command in result.output


def test_no_args_shows_help():
    result = runner.invoke(app, [])
    assert "Usage" in result.output


def test_version():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert __version__ in result.output


@pytest.mark.parametrize("command", ["add", "edit", "complete"])
def test_missing_argument(command):
    result = runner.invoke(app, [command])
    assert result.exit_code == 2
