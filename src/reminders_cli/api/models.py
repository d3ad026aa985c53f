"""Pydantic models for Apple sign-in and CloudKit responses.

Records inside change/modify responses stay plain dicts: the sync engine
folds them generically and must tolerate fields it does not know.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

Record = dict[str, Any]


class AuthInitResponse(BaseModel):
    """SRP challenge returned by /signin/init."""

    iteration: int
    salt: str
    protocol: str = "s2k"
    b: str
    c: str


class DsInfo(BaseModel):
    model_config = {"extra": "allow", "populate_by_name": True}

    dsid: str = ""


class WebService(BaseModel):
    model_config = {"extra": "allow"}

    url: str = ""
    status: str | None = None


class AccountLoginResponse(BaseModel):
    """Subset of /accountLogin used to reach CloudKit."""

    model_config = {"extra": "allow", "populate_by_name": True}

    ds_info: DsInfo = Field(default_factory=DsInfo, alias="dsInfo")
    webservices: dict[str, WebService] = Field(default_factory=dict)

    @property
    def ck_base_url(self) -> str:
        service = self.webservices.get("ckdatabasews")
        return service.url if service else ""


class ZoneID(BaseModel):
    model_config = {"extra": "allow", "populate_by_name": True}

    zone_name: str = Field(default="", alias="zoneName")
    owner_record_name: str | None = Field(default=None, alias="ownerRecordName")


class Zone(BaseModel):
    model_config = {"extra": "allow", "populate_by_name": True}

    zone_id: ZoneID = Field(default_factory=ZoneID, alias="zoneID")


class ZoneListResponse(BaseModel):
    model_config = {"extra": "allow"}

    zones: list[Zone] = Field(default_factory=list)


class ZoneChanges(BaseModel):
    """One zone's page of a changes/zone response."""

    model_config = {"extra": "allow", "populate_by_name": True}

    records: list[Record] = Field(default_factory=list)
    more_coming: bool = Field(default=False, alias="moreComing")
    sync_token: str | None = Field(default=None, alias="syncToken")


class ChangesZoneResponse(BaseModel):
    model_config = {"extra": "allow"}

    zones: list[ZoneChanges] = Field(default_factory=list)


class ModifyRecordsResponse(BaseModel):
    """Result of records/modify.

    ``error`` is set only when the request itself failed; record-level
    rejections arrive inside ``records`` with a ``serverErrorCode``.
    """

    model_config = {"extra": "allow"}

    records: list[Record] = Field(default_factory=list)
    error: str | None = None

    def first_record_error(self) -> tuple[str, str] | None:
        for record in self.records:
            code = record.get("serverErrorCode")
            if code:
                return code, record.get("reason", "")
        return None

    def change_tag(self, index: int = 0) -> str:
        if index >= len(self.records):
            return ""
        return self.records[index].get("recordChangeTag") or ""
