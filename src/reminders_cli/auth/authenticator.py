"""iCloud sign-in for CloudKit access.

Flow for a fresh sign-in:
  1. authorize/signin   - start a session, capture X-Apple-Auth-Attributes
  2. federate           - submit the Apple ID alone
  3. signin/init        - send SRP A, receive salt, B and iteration count
  4. signin/complete    - send SRP proofs M1/M2 (409 means a code is needed)
  5. verify/...code     - submit the one-time code when required
  6. 2sv/trust          - fetch session and trust tokens (best effort)
  7. accountLogin       - exchange the session token for the CloudKit URL

A saved session is reused when a probe call succeeds; otherwise one
accountLogin refresh is tried before falling back to a full sign-in.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import uuid
from dataclasses import dataclass, field

import httpx
from pydantic import ValidationError

from reminders_cli.api.http import send_with_retry
from reminders_cli.api.models import AccountLoginResponse, AuthInitResponse
from reminders_cli.auth.cookies import (
    extract_cookies,
    restore_cookies,
    session_token_from_cookies,
)
from reminders_cli.auth.credentials import CredentialsProvider
from reminders_cli.auth.session import Session, SessionStore
from reminders_cli.auth.srp import PROTOCOLS, SRPClient, derive_password_key
from reminders_cli.config import APIConfig
from reminders_cli.exceptions import (
    AccountActionRequiredError,
    APIError,
    AuthenticationError,
    InvalidCredentialsError,
    RemindersError,
    TwoFactorError,
)

logger = logging.getLogger(__name__)

AUTH_ENDPOINT = "https://idmsa.apple.com/appleauth/auth"
SETUP_ENDPOINT = "https://setup.icloud.com/setup/ws/1"
HOME_ENDPOINT = "https://www.icloud.com"

WIDGET_KEY = "d39ba9916b7251055b22c7f910e2ea796ee65e98b2ddecea8f5dde8d9d1a815d"
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)
FD_CLIENT_INFO = json.dumps(
    {
        "U": USER_AGENT,
        "L": "en-US",
        "Z": "GMT-04:00",
        "V": "1.1",
        "F": "",
    },
    separators=(",", ":"),
)

PROBE_PATH = "database/1/com.apple.reminders/production/private/zones/list"

WEB_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
    "Origin": HOME_ENDPOINT,
    "Referer": f"{HOME_ENDPOINT}/",
}


@dataclass
class Handshake:
    """Mutable state of one sign-in attempt."""

    client: httpx.AsyncClient
    session: Session
    username: str = ""
    password: str = ""
    client_id: str = field(default_factory=lambda: f"auth-{uuid.uuid4()}")
    auth_attributes: str = ""
    two_factor_required: bool = False


class Authenticator:
    """Produces a usable Session, reusing the saved one when possible."""

    def __init__(
        self,
        store: SessionStore,
        credentials: CredentialsProvider,
        *,
        api_config: APIConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.store = store
        self.credentials = credentials
        self.api_config = api_config or APIConfig()
        self._transport = transport

    def _new_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.api_config.timeout,
            follow_redirects=True,
            transport=self._transport,
        )

    async def ensure_session(self, force_reauth: bool = False) -> Session:
        """Return a session whose cookies reach CloudKit.

        Raises:
            AuthenticationError: Credentials or code rejected
            TransportError: Network failure after retries
        """
        saved = self.store.load()

        if not force_reauth and saved is not None and saved.is_usable:
            reused = await self._reuse(saved)
            if reused is not None:
                return reused

        trust_token = saved.trust_token if saved else ""
        return await self.full_auth(trust_token=trust_token)

    async def _reuse(self, saved: Session) -> Session | None:
        logger.info("Trying saved session...")
        async with self._new_client() as client:
            restore_cookies(client.cookies, saved.cookies, saved.ck_base_url)

            if await self.probe(client, saved.ck_base_url):
                logger.info("Session reused OK.")
                return saved

            logger.info("Probe failed, trying accountLogin refresh...")
            hs = Handshake(client=client, session=saved.model_copy(deep=True))
            try:
                await self._account_login(hs, retry=0)
            except RemindersError as e:
                logger.info("accountLogin refresh failed (%s), doing full sign-in", e)
                return None

            hs.session.cookies = extract_cookies(client.cookies)
            hs.session.touch()
            self._persist(hs.session)
            logger.info("Session refreshed via accountLogin.")
            return hs.session

    async def probe(self, client: httpx.AsyncClient, ck_base_url: str) -> bool:
        """Lightweight zones/list call; True on any 2xx."""
        if not ck_base_url:
            return False
        url = ck_base_url.rstrip("/") + "/" + PROBE_PATH
        try:
            response = await client.post(url, content=b"{}", headers=WEB_HEADERS)
        except httpx.RequestError as e:
            logger.debug("Probe failed: %s", e)
            return False
        return 200 <= response.status_code < 300

    async def full_auth(self, trust_token: str = "") -> Session:
        """Run the complete SRP sign-in and persist the resulting session."""
        username, password = self.credentials.get_credentials()
        if not username or not password:
            raise InvalidCredentialsError("Apple ID and password are required")

        logger.warning("Signing in to iCloud as %s...", username)
        async with self._new_client() as client:
            hs = Handshake(
                client=client,
                session=Session(trust_token=trust_token),
                username=username,
                password=password,
            )
            await self._auth_start(hs)
            await self._federate(hs)

            if await self._srp_exchange(hs):
                logger.warning("Two-factor authentication required.")
                code = self.credentials.get_verification_code()
                await self._verify_code(hs, code)
                logger.info("2FA accepted.")

            try:
                await self._fetch_trust(hs)
            except RemindersError as e:
                logger.warning("Could not fetch trust token: %s", e)

            await self._account_login(hs)

            hs.session.cookies = extract_cookies(client.cookies)
            hs.session.touch()

        self._persist(hs.session)
        logger.info("Authenticated. CloudKit base: %s", hs.session.ck_base_url)
        return hs.session

    def _persist(self, session: Session) -> None:
        try:
            self.store.save(session)
        except OSError as e:
            logger.warning("Failed to save session: %s", e)

    # --- handshake steps -------------------------------------------------

    def _auth_headers(self, hs: Handshake) -> dict[str, str]:
        headers = {
            "X-Requested-With": "XMLHttpRequest",
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Referer": "https://idmsa.apple.com/",
            "Origin": "https://idmsa.apple.com",
            "User-Agent": USER_AGENT,
            "X-Apple-Widget-Key": WIDGET_KEY,
            "X-Apple-I-Require-UE": "true",
            "X-Apple-Auth-Attributes": hs.auth_attributes,
            "X-Apple-Mandate-Security-Upgrade": "0",
            "X-Apple-OAuth-Client-Id": WIDGET_KEY,
            "X-Apple-OAuth-Client-Type": "firstPartyAuth",
            "X-Apple-OAuth-Redirect-URI": HOME_ENDPOINT,
            "X-Apple-OAuth-Require-Grant-Code": "true",
            "X-Apple-OAuth-Response-Mode": "web_message",
            "X-Apple-OAuth-Response-Type": "code",
            "X-Apple-OAuth-State": hs.client_id,
            "X-Apple-Offer-Security-Upgrade": "1",
            "X-Apple-Frame-Id": hs.client_id,
            "X-Apple-I-FD-Client-Info": FD_CLIENT_INFO,
        }
        if hs.session.scnt:
            headers["scnt"] = hs.session.scnt
        if hs.session.session_id:
            headers["X-Apple-ID-Session-Id"] = hs.session.session_id
        return headers

    def _capture_headers(self, hs: Handshake, response: httpx.Response) -> None:
        """Adopt server-issued handshake values; absent headers keep old values."""
        captured = {
            "session_id": response.headers.get("X-Apple-ID-Session-Id"),
            "scnt": response.headers.get("scnt"),
            "session_token": response.headers.get("X-Apple-Session-Token"),
            "trust_token": response.headers.get("X-Apple-TwoSV-Trust-Token"),
            "account_country": response.headers.get("X-Apple-ID-Account-Country"),
        }
        for name, value in captured.items():
            if value:
                setattr(hs.session, name, value)

    async def _send(self, hs: Handshake, method: str, url: str, **kwargs) -> httpx.Response:
        return await send_with_retry(
            hs.client,
            method,
            url,
            retry=self.api_config.retry,
            backoff_max=self.api_config.backoff_max,
            **kwargs,
        )

    async def _auth_start(self, hs: Handshake) -> None:
        params = {
            "frame_id": hs.client_id,
            "language": "en_US",
            "skVersion": "7",
            "iframeId": hs.client_id,
            "client_id": WIDGET_KEY,
            "redirect_uri": HOME_ENDPOINT,
            "response_type": "code",
            "response_mode": "web_message",
            "state": hs.client_id,
            "authVersion": "latest",
        }
        response = await self._send(
            hs,
            "GET",
            f"{AUTH_ENDPOINT}/authorize/signin",
            params=params,
            headers={"Accept": "*/*", "User-Agent": USER_AGENT},
        )
        if response.status_code != 200:
            raise APIError(response.status_code, response.text[:500])
        hs.auth_attributes = response.headers.get("X-Apple-Auth-Attributes", "")

    async def _federate(self, hs: Handshake) -> None:
        response = await self._send(
            hs,
            "POST",
            f"{AUTH_ENDPOINT}/federate",
            params={"isRememberMeEnabled": "true"},
            json={"accountName": hs.username, "rememberMe": True},
            headers=self._auth_headers(hs),
        )
        if response.status_code != 200:
            raise APIError(response.status_code, response.text[:500])
        self._capture_headers(hs, response)

    async def _srp_exchange(self, hs: Handshake) -> bool:
        """Prove the password; returns True when a one-time code is required."""
        srp = SRPClient(hs.username)
        response = await self._send(
            hs,
            "POST",
            f"{AUTH_ENDPOINT}/signin/init",
            json={
                "a": base64.b64encode(srp.public_bytes).decode("ascii"),
                "accountName": hs.username,
                "protocols": list(PROTOCOLS),
            },
            headers=self._auth_headers(hs),
        )
        if response.status_code in (401, 403):
            raise InvalidCredentialsError("Invalid Apple ID or password")
        if response.status_code != 200:
            raise APIError(response.status_code, response.text[:500])
        self._capture_headers(hs, response)

        try:
            challenge = AuthInitResponse.model_validate(response.json())
            salt = base64.b64decode(challenge.salt)
            server_public = base64.b64decode(challenge.b)
        except (ValueError, ValidationError, binascii.Error) as e:
            raise AuthenticationError(f"Malformed SRP challenge: {e}") from e

        password_key = derive_password_key(
            hs.password, salt, challenge.iteration, challenge.protocol
        )
        m1, m2 = srp.process_challenge(salt, server_public, password_key)

        response = await self._send(
            hs,
            "POST",
            f"{AUTH_ENDPOINT}/signin/complete",
            params={"isRememberMeEnabled": "true"},
            json={
                "accountName": hs.username,
                "rememberMe": True,
                "trustTokens": [hs.session.trust_token] if hs.session.trust_token else [],
                "m1": base64.b64encode(m1).decode("ascii"),
                "c": challenge.c,
                "m2": base64.b64encode(m2).decode("ascii"),
            },
            headers=self._auth_headers(hs),
        )
        self._capture_headers(hs, response)

        status = response.status_code
        if status == 200:
            return False
        if status == 409:
            hs.two_factor_required = True
            return True
        if status == 403:
            raise InvalidCredentialsError("Invalid Apple ID or password")
        if status == 401:
            raise InvalidCredentialsError("Unauthorized - check your Apple ID and password")
        if status == 412:
            raise AccountActionRequiredError(
                "Apple requires you to acknowledge a privacy notice - "
                "sign in at https://appleid.apple.com and try again"
            )
        raise APIError(status, response.text[:500])

    async def _verify_code(self, hs: Handshake, code: str) -> None:
        code = code.strip()
        if not code:
            raise TwoFactorError("No verification code entered")
        response = await self._send(
            hs,
            "POST",
            f"{AUTH_ENDPOINT}/verify/trusteddevice/securitycode",
            json={"securityCode": {"code": code}},
            headers=self._auth_headers(hs),
        )
        if response.status_code not in (200, 204):
            raise TwoFactorError(
                f"Verification code rejected (HTTP {response.status_code})"
            )
        self._capture_headers(hs, response)

    async def _fetch_trust(self, hs: Handshake) -> None:
        response = await self._send(
            hs, "GET", f"{AUTH_ENDPOINT}/2sv/trust", headers=self._auth_headers(hs)
        )
        if response.status_code not in (200, 204):
            raise APIError(response.status_code, "trust token request failed")
        self._capture_headers(hs, response)

    async def _account_login(self, hs: Handshake, retry: int | None = None) -> None:
        """Exchange the session token for the CloudKit base URL and account id."""
        token = hs.session.session_token or session_token_from_cookies(hs.client.cookies)
        if not token:
            raise AuthenticationError("No session token available for accountLogin")

        body: dict[str, object] = {"dsWebAuthToken": token, "extended_login": True}
        if hs.session.account_country:
            body["accountCountryCode"] = hs.session.account_country
        if hs.session.dsid:
            body["dsPrsId"] = hs.session.dsid

        response = await send_with_retry(
            hs.client,
            "POST",
            f"{SETUP_ENDPOINT}/accountLogin",
            retry=self.api_config.retry if retry is None else retry,
            backoff_max=self.api_config.backoff_max,
            json=body,
            headers=WEB_HEADERS,
        )
        if response.status_code != 200:
            raise APIError(response.status_code, response.text[:500])

        try:
            result = AccountLoginResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise AuthenticationError(f"Malformed accountLogin response: {e}") from e

        if not result.ck_base_url:
            raise AuthenticationError("No ckdatabasews URL in accountLogin response")

        hs.session.ck_base_url = result.ck_base_url
        hs.session.session_token = token
        if result.ds_info.dsid:
            hs.session.dsid = result.ds_info.dsid
