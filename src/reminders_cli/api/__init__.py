"""CloudKit web services access."""

from reminders_cli.api.client import CloudKitClient, CloudKitClientProtocol

__all__ = ["CloudKitClient", "CloudKitClientProtocol"]
