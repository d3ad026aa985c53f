"""Persisted authentication state (session.json)."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)


class Cookie(BaseModel):
    """A serializable HTTP cookie."""

    name: str
    value: str
    domain: str = ""
    path: str = "/"
    expires: int = 0  # epoch seconds, 0 for session cookies
    secure: bool = False


class Session(BaseModel):
    """Authentication state shared between sign-in and CloudKit calls.

    Attributes:
        ck_base_url: CloudKit database web service base URL
        session_token: idmsa session token exchanged for the base URL
        trust_token: 2FA trust token; lets later sign-ins skip the code
        account_country: Account country reported during sign-in
        session_id: X-Apple-ID-Session-Id from the handshake
        scnt: Server nonce echoed on every handshake request
        dsid: Account id returned by accountLogin
        cookies: Cookies for the Apple/iCloud hosts
        created_at: RFC 3339 timestamp of the last sign-in or refresh
    """

    ck_base_url: str = ""
    session_token: str = ""
    trust_token: str = ""
    account_country: str = ""
    session_id: str = ""
    scnt: str = ""
    dsid: str = ""
    cookies: list[Cookie] = Field(default_factory=list)
    created_at: str = ""

    # Written by older bootstrap scripts; accepted and dropped.
    headers: dict[str, str] | None = Field(default=None, exclude=True)

    @property
    def is_usable(self) -> bool:
        """A session can be used for CloudKit calls once it has a base URL."""
        return bool(self.ck_base_url)

    def touch(self) -> None:
        self.created_at = datetime.now(UTC).isoformat(timespec="seconds")


class SessionStore:
    """Loads and saves a Session as JSON."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> Session | None:
        """Return the saved session, or None if missing or unreadable."""
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning("Could not read session file %s: %s", self.path, e)
            return None

        try:
            return Session.model_validate(json.loads(raw))
        except (ValueError, ValidationError) as e:
            logger.warning("Ignoring corrupt session file %s: %s", self.path, e)
            return None

    def save(self, session: Session) -> None:
        """Write the session, readable by the owner only."""
        self.path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
        self.path.write_text(session.model_dump_json(indent=2), encoding="utf-8")
        self.path.chmod(0o600)
        logger.debug("Session saved to %s", self.path)
