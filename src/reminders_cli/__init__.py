"""Native iCloud Reminders client (SRP sign-in + CloudKit)."""

__version__ = "0.1.0"
