"""CloudKit web services client for the Reminders container.

All calls go to the private database of ``com.apple.reminders`` in the
``Reminders`` zone, authenticated by the session cookies.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol, runtime_checkable

import httpx
from pydantic import ValidationError

from reminders_cli.api.http import send_with_retry
from reminders_cli.api.models import (
    ChangesZoneResponse,
    ModifyRecordsResponse,
    Record,
    ZoneListResponse,
)
from reminders_cli.auth.cookies import restore_cookies
from reminders_cli.auth.session import Session
from reminders_cli.config import APIConfig
from reminders_cli.exceptions import APIError, NotFoundError, TransportError

logger = logging.getLogger(__name__)

CONTAINER = "com.apple.reminders"
ZONE_NAME = "Reminders"
DATABASE_PATH = f"database/1/{CONTAINER}/production/private"

DESIRED_KEYS = [
    "TitleDocument",
    "NotesDocument",
    "Name",
    "Completed",
    "CompletionDate",
    "DueDate",
    "List",
    "Deleted",
    "Priority",
    "ParentReminder",
]

_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
    "Origin": "https://www.icloud.com",
    "Referer": "https://www.icloud.com/",
}


@runtime_checkable
class CloudKitClientProtocol(Protocol):
    """What the sync engine and writer need from CloudKit.

    Tests pass fakes that satisfy this without touching the network.
    """

    async def get_owner_id(self) -> str:
        """Return the owner record name of the Reminders zone."""
        ...

    async def changes_zone(
        self, owner_id: str, sync_token: str | None = None
    ) -> ChangesZoneResponse:
        """Return one page of zone changes since ``sync_token``."""
        ...

    async def modify_records(
        self, owner_id: str, operations: list[dict[str, Any]]
    ) -> ModifyRecordsResponse:
        """Apply ``operations`` atomically."""
        ...


def zone_id(owner_id: str) -> dict[str, str]:
    return {"zoneName": ZONE_NAME, "ownerRecordName": owner_id}


class CloudKitClient:
    """Concrete CloudKit client using httpx.

    Args:
        session: Authenticated session providing the base URL and cookies.
        api_config: Timeout and retry settings.
        transport: Optional httpx transport, used by tests.
    """

    def __init__(
        self,
        session: Session,
        api_config: APIConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.session = session
        self.api_config = api_config or APIConfig()
        self.base_url = session.ck_base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            timeout=self.api_config.timeout,
            follow_redirects=True,
            headers=_HEADERS,
            transport=transport,
        )
        restore_cookies(self._client.cookies, session.cookies, session.ck_base_url)

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> CloudKitClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _post(self, endpoint: str, body: dict[str, Any]) -> dict[str, Any]:
        url = f"{self.base_url}/{DATABASE_PATH}/{endpoint}"
        response = await send_with_retry(
            self._client,
            "POST",
            url,
            retry=self.api_config.retry,
            backoff_max=self.api_config.backoff_max,
            json=body,
        )
        if not 200 <= response.status_code < 300:
            raise APIError(response.status_code, response.text[:500])
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(f"Invalid JSON from {endpoint}: {e}") from e

    async def list_zones(self) -> ZoneListResponse:
        data = await self._post("zones/list", {})
        return ZoneListResponse.model_validate(data)

    async def get_owner_id(self) -> str:
        """Owner record name of the Reminders zone, else of the first zone."""
        zones = (await self.list_zones()).zones
        for zone in zones:
            if zone.zone_id.zone_name == ZONE_NAME and zone.zone_id.owner_record_name:
                return zone.zone_id.owner_record_name
        for zone in zones:
            if zone.zone_id.owner_record_name:
                return zone.zone_id.owner_record_name
        raise NotFoundError("No CloudKit zones found for this account")

    async def changes_zone(
        self, owner_id: str, sync_token: str | None = None
    ) -> ChangesZoneResponse:
        zone: dict[str, Any] = {
            "zoneID": zone_id(owner_id),
            "desiredKeys": DESIRED_KEYS,
        }
        if sync_token:
            zone["syncToken"] = sync_token
        data = await self._post("changes/zone", {"zones": [zone]})
        try:
            return ChangesZoneResponse.model_validate(data)
        except ValidationError as e:
            raise TransportError(f"Malformed changes/zone response: {e}") from e

    async def modify_records(
        self, owner_id: str, operations: list[Record]
    ) -> ModifyRecordsResponse:
        """Submit ``operations`` as one atomic batch.

        Request-level failures are reported in ``error`` rather than raised,
        so callers handle them the same way as an unparsable response.
        """
        body = {"zoneID": zone_id(owner_id), "operations": operations, "atomic": True}
        try:
            data = await self._post("records/modify", body)
            return ModifyRecordsResponse.model_validate(data)
        except (TransportError, ValidationError) as e:
            logger.debug("records/modify failed: %s", e)
            return ModifyRecordsResponse(error=str(e))
