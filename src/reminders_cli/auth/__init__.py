"""iCloud sign-in: SRP handshake, two-factor step-up and session persistence."""

from reminders_cli.auth.authenticator import Authenticator
from reminders_cli.auth.credentials import CredentialsProvider
from reminders_cli.auth.session import Cookie, Session, SessionStore

__all__ = [
    "Authenticator",
    "Cookie",
    "CredentialsProvider",
    "Session",
    "SessionStore",
]
