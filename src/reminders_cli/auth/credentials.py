"""Where the Apple ID and password come from.

Resolution order: environment variables, the credentials file in the
config directory, then an interactive prompt.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from rich.prompt import Prompt

logger = logging.getLogger(__name__)

USERNAME_ENV = "ICLOUD_USERNAME"
PASSWORD_ENV = "ICLOUD_PASSWORD"


def parse_credentials_file(path: Path) -> tuple[str, str]:
    """Read ICLOUD_USERNAME / ICLOUD_PASSWORD from a shell-export style file.

    Both ``export ICLOUD_USERNAME="value"`` and ``ICLOUD_USERNAME=value``
    lines are accepted. Missing keys come back as empty strings.
    """
    username = password = ""
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip().removeprefix("export ").strip()
        key, sep, value = line.partition("=")
        if not sep:
            continue
        value = value.strip().strip("\"'")
        if key == USERNAME_ENV:
            username = value
        elif key == PASSWORD_ENV:
            password = value
    return username, password


class CredentialsProvider:
    """Resolves (username, password) and prompts for one-time codes."""

    def __init__(self, credentials_file: Path | None = None, interactive: bool = True):
        self.credentials_file = credentials_file
        self.interactive = interactive

    def get_credentials(self) -> tuple[str, str]:
        username = os.environ.get(USERNAME_ENV, "")
        password = os.environ.get(PASSWORD_ENV, "")
        if username and password:
            logger.debug("Using credentials from environment")

        if (not username or not password) and self.credentials_file:
            try:
                file_user, file_pass = parse_credentials_file(self.credentials_file)
            except FileNotFoundError:
                file_user = file_pass = ""
            if file_user or file_pass:
                logger.debug("Using credentials from %s", self.credentials_file)
            username = username or file_user
            password = password or file_pass

        if self.interactive:
            if not username:
                username = Prompt.ask("Apple ID")
            if not password:
                password = Prompt.ask("Password", password=True)

        return username.strip(), password

    def get_verification_code(self) -> str:
        if not self.interactive:
            return ""
        return Prompt.ask("Enter 2FA code").strip()
