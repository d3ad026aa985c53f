"""Exceptions raised by the reminders client."""

from reminders_cli.utils import exit_codes

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


def is_retryable_status(status_code: int) -> bool:
    """Return True for HTTP statuses worth retrying with backoff."""
    return status_code in RETRYABLE_STATUS_CODES


class RemindersError(Exception):
    """Base exception for all reminders client errors."""

    exit_code = exit_codes.ERROR_GENERAL


class ConfigError(RemindersError):
    """Raised when the configuration file cannot be read or written."""


class InvalidInputError(RemindersError):
    """Raised for malformed user input (due date, priority, empty batch)."""

    exit_code = exit_codes.ERROR_INVALID_ARGS


class AuthenticationError(RemindersError):
    """Raised when sign-in cannot produce a usable session."""

    exit_code = exit_codes.ERROR_AUTH_FAILURE


class InvalidCredentialsError(AuthenticationError):
    """Raised when the Apple ID or password is rejected."""


class TwoFactorError(AuthenticationError):
    """Raised when the one-time code is rejected."""


class AccountActionRequiredError(AuthenticationError):
    """Raised when Apple requires an acknowledgment on appleid.apple.com."""


class SRPError(AuthenticationError):
    """Raised when the server's SRP challenge is unusable."""


class TransportError(RemindersError):
    """Raised when a request could not be completed."""

    exit_code = exit_codes.ERROR_NETWORK


class APIError(TransportError):
    """Non-2xx HTTP response from an Apple endpoint."""

    def __init__(self, status_code: int, body: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(f"API error {status_code}: {body}")

    @property
    def retryable(self) -> bool:
        return is_retryable_status(self.status_code)


class NotFoundError(RemindersError):
    """Raised when a list, parent or reminder cannot be resolved."""

    exit_code = exit_codes.ERROR_NOT_FOUND


class StaleCacheError(RemindersError):
    """Raised when a cached record has no change tag to write against."""

    exit_code = exit_codes.ERROR_STALE_CACHE

    def __init__(self, reminder_id: str):
        self.reminder_id = reminder_id
        super().__init__(
            f"missing change tag for '{reminder_id}' - try running 'sync' first"
        )


class RecordRejectedError(RemindersError):
    """Record-level error reported inside a successful modify response."""

    exit_code = exit_codes.ERROR_RECORD_REJECTED

    def __init__(self, code: str, reason: str = ""):
        self.code = code
        self.reason = reason
        super().__init__(f"CloudKit error {code}: {reason}")
