"""
Exit codes for the reminders CLI.

Semantic exit codes so scripts can tell what went wrong without parsing
the error line.
"""

# Success
SUCCESS = 0

# General error (unspecified)
ERROR_GENERAL = 1

# Invalid arguments or validation error
ERROR_INVALID_ARGS = 2

# Authentication failure (bad password, rejected code, account action needed)
ERROR_AUTH_FAILURE = 3

# Network or API error (server unreachable, non-2xx after retries)
ERROR_NETWORK = 4

# Resource not found (list, parent or reminder)
ERROR_NOT_FOUND = 5

# Local cache is stale (missing change tag)
ERROR_STALE_CACHE = 6

# The service rejected a record in an otherwise successful response
ERROR_RECORD_REJECTED = 7


def get_exit_code_name(code: int) -> str:
    """Get the name of an exit code for display purposes."""
    code_names = {
        SUCCESS: "SUCCESS",
        ERROR_GENERAL: "ERROR_GENERAL",
        ERROR_INVALID_ARGS: "ERROR_INVALID_ARGS",
        ERROR_AUTH_FAILURE: "ERROR_AUTH_FAILURE",
        ERROR_NETWORK: "ERROR_NETWORK",
        ERROR_NOT_FOUND: "ERROR_NOT_FOUND",
        ERROR_STALE_CACHE: "ERROR_STALE_CACHE",
        ERROR_RECORD_REJECTED: "ERROR_RECORD_REJECTED",
    }
    return code_names.get(code, f"UNKNOWN({code})")

