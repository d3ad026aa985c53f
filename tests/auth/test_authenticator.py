"""Wire-level tests for the Authenticator using httpx.MockTransport."""

from __future__ import annotations

import base64
import json
from unittest.mock import MagicMock

import httpx
import pytest

from reminders_cli.auth.authenticator import WIDGET_KEY, Authenticator
from reminders_cli.auth.credentials import CredentialsProvider
from reminders_cli.auth.session import Cookie, Session, SessionStore
from reminders_cli.auth.srp import G, N, _to_bytes
from reminders_cli.config import APIConfig
from reminders_cli.exceptions import (
    AccountActionRequiredError,
    APIError,
    InvalidCredentialsError,
    TwoFactorError,
)

CK_URL = "https://p42-ckdatabasews.icloud.com:443"


class FakeApple:
    """Routes requests to canned idmsa, setup and CloudKit responses."""

    def __init__(
        self,
        *,
        complete_status: int = 200,
        complete_headers: dict[str, str] | None = None,
        verify_status: int = 204,
        trust_status: int = 204,
        login_status: int = 200,
        probe_status: int = 200,
    ):
        self.complete_status = complete_status
        self.complete_headers = complete_headers or {}
        self.verify_status = verify_status
        self.trust_status = trust_status
        self.login_status = login_status
        self.probe_status = probe_status
        self.requests: list[httpx.Request] = []

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]

    def find(self, suffix: str) -> httpx.Request:
        return next(r for r in self.requests if r.url.path.endswith(suffix))

    def count(self, suffix: str) -> int:
        return sum(1 for r in self.requests if r.url.path.endswith(suffix))

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path.endswith("/authorize/signin"):
            return httpx.Response(200, headers={"X-Apple-Auth-Attributes": "attrs"}, text="<html>")
        if path.endswith("/federate"):
            return httpx.Response(
                200,
                headers={"scnt": "scnt-1", "X-Apple-ID-Session-Id": "sid-1"},
                json={"hasSWP": False},
            )
        if path.endswith("/signin/init"):
            return httpx.Response(
                200,
                headers={"scnt": "scnt-2"},
                json={
                    "iteration": 10,
                    "salt": base64.b64encode(b"salty-salt-bytes").decode(),
                    "protocol": "s2k",
                    "b": base64.b64encode(_to_bytes(pow(G, 424242, N))).decode(),
                    "c": "c-token",
                },
            )
        if path.endswith("/signin/complete"):
            headers = dict(self.complete_headers)
            if self.complete_status == 200:
                headers.setdefault("X-Apple-Session-Token", "sess-tok")
            return httpx.Response(self.complete_status, headers=headers, json={})
        if path.endswith("/verify/trusteddevice/securitycode"):
            return httpx.Response(self.verify_status, headers={"scnt": "scnt-3"})
        if path.endswith("/2sv/trust"):
            return httpx.Response(
                self.trust_status,
                headers={
                    "X-Apple-Session-Token": "sess-tok",
                    "X-Apple-TwoSV-Trust-Token": "trust-tok",
                },
            )
        if path.endswith("/accountLogin"):
            if self.login_status != 200:
                return httpx.Response(self.login_status, json={"error": "nope"})
            return httpx.Response(
                200,
                headers={"Set-Cookie": "X-APPLE-WEBAUTH-USER=abc; Domain=.icloud.com; Path=/"},
                json={
                    "dsInfo": {"dsid": "123456"},
                    "webservices": {"ckdatabasews": {"url": CK_URL, "status": "active"}},
                },
            )
        if path.endswith("/zones/list"):
            return httpx.Response(self.probe_status, json={"zones": []})
        return httpx.Response(404)


def _credentials(code: str = "123456") -> MagicMock:
    creds = MagicMock(spec=CredentialsProvider)
    creds.get_credentials.return_value = ("user@example.com", "hunter2")
    creds.get_verification_code.return_value = code
    return creds


def _authenticator(tmp_path, apple: FakeApple, credentials=None) -> Authenticator:
    return Authenticator(
        SessionStore(tmp_path / "session.json"),
        credentials or _credentials(),
        api_config=APIConfig(retry=0),
        transport=httpx.MockTransport(apple),
    )


def _body(request: httpx.Request) -> dict:
    return json.loads(request.content)


# ---------------------------------------------------------------------------
# Full sign-in
# ---------------------------------------------------------------------------


class TestFullAuth:
    @pytest.mark.asyncio
    async def test_sign_in_without_two_factor(self, tmp_path):
        apple = FakeApple()
        auth = _authenticator(tmp_path, apple)

        session = await auth.ensure_session()

        assert session.ck_base_url == CK_URL
        assert session.dsid == "123456"
        assert session.session_token == "sess-tok"
        assert session.trust_token == "trust-tok"
        assert session.created_at
        assert any(c.name == "X-APPLE-WEBAUTH-USER" for c in session.cookies)
        assert apple.count("/verify/trusteddevice/securitycode") == 0
        assert SessionStore(tmp_path / "session.json").load() == session

    @pytest.mark.asyncio
    async def test_handshake_headers_echoed(self, tmp_path):
        apple = FakeApple()
        await _authenticator(tmp_path, apple).ensure_session()

        complete = apple.find("/signin/complete")
        assert complete.headers["scnt"] == "scnt-2"
        assert complete.headers["X-Apple-ID-Session-Id"] == "sid-1"
        assert complete.headers["X-Apple-Auth-Attributes"] == "attrs"
        assert complete.headers["X-Apple-Widget-Key"] == WIDGET_KEY
        assert complete.headers["X-Requested-With"] == "XMLHttpRequest"

        federate = apple.find("/federate")
        assert "scnt" not in federate.headers

    @pytest.mark.asyncio
    async def test_srp_request_bodies(self, tmp_path):
        apple = FakeApple()
        await _authenticator(tmp_path, apple).ensure_session()

        init = _body(apple.find("/signin/init"))
        assert init["accountName"] == "user@example.com"
        assert init["protocols"] == ["s2k", "s2k_fo"]
        assert base64.b64decode(init["a"])

        complete = _body(apple.find("/signin/complete"))
        assert complete["c"] == "c-token"
        assert complete["trustTokens"] == []
        assert len(base64.b64decode(complete["m1"])) == 32
        assert len(base64.b64decode(complete["m2"])) == 32
        assert complete["rememberMe"] is True

    @pytest.mark.asyncio
    async def test_password_never_sent(self, tmp_path):
        apple = FakeApple()
        await _authenticator(tmp_path, apple).ensure_session()
        assert all(b"hunter2" not in r.content for r in apple.requests)

    @pytest.mark.asyncio
    async def test_account_country_sent_to_account_login(self, tmp_path):
        apple = FakeApple(complete_headers={"X-Apple-ID-Account-Country": "USA"})
        session = await _authenticator(tmp_path, apple).ensure_session()

        assert session.account_country == "USA"
        body = _body(apple.find("/accountLogin"))
        assert body["accountCountryCode"] == "USA"
        assert body["dsWebAuthToken"] == "sess-tok"
        assert body["extended_login"] is True

    @pytest.mark.asyncio
    async def test_trust_failure_is_not_fatal(self, tmp_path):
        apple = FakeApple(trust_status=400)
        session = await _authenticator(tmp_path, apple).ensure_session()
        assert session.ck_base_url == CK_URL
        assert session.trust_token == ""


class TestTwoFactor:
    @pytest.mark.asyncio
    async def test_code_submitted_with_previous_headers(self, tmp_path):
        apple = FakeApple(complete_status=409)
        creds = _credentials("654321")

        session = await _authenticator(tmp_path, apple, creds).ensure_session()

        verify = apple.find("/verify/trusteddevice/securitycode")
        assert _body(verify) == {"securityCode": {"code": "654321"}}
        assert verify.headers["scnt"] == "scnt-2"
        assert verify.headers["X-Apple-ID-Session-Id"] == "sid-1"
        assert apple.find("/2sv/trust").headers["scnt"] == "scnt-3"
        assert session.trust_token == "trust-tok"
        creds.get_verification_code.assert_called_once()

    @pytest.mark.asyncio
    async def test_empty_code(self, tmp_path):
        apple = FakeApple(complete_status=409)
        with pytest.raises(TwoFactorError):
            await _authenticator(tmp_path, apple, _credentials("")).ensure_session()
        assert apple.count("/verify/trusteddevice/securitycode") == 0

    @pytest.mark.asyncio
    async def test_rejected_code(self, tmp_path):
        apple = FakeApple(complete_status=409, verify_status=400)
        with pytest.raises(TwoFactorError):
            await _authenticator(tmp_path, apple).ensure_session()
        assert not (tmp_path / "session.json").exists()

    @pytest.mark.asyncio
    async def test_stored_trust_token_sent(self, tmp_path):
        SessionStore(tmp_path / "session.json").save(Session(trust_token="old-trust"))
        apple = FakeApple()

        await _authenticator(tmp_path, apple).ensure_session()

        assert _body(apple.find("/signin/complete"))["trustTokens"] == ["old-trust"]


class TestCredentialErrors:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [401, 403])
    async def test_bad_password(self, tmp_path, status):
        apple = FakeApple(complete_status=status)
        with pytest.raises(InvalidCredentialsError):
            await _authenticator(tmp_path, apple).ensure_session()
        assert apple.count("/accountLogin") == 0

    @pytest.mark.asyncio
    async def test_privacy_acknowledgment(self, tmp_path):
        apple = FakeApple(complete_status=412)
        with pytest.raises(AccountActionRequiredError, match="appleid.apple.com"):
            await _authenticator(tmp_path, apple).ensure_session()

    @pytest.mark.asyncio
    async def test_missing_credentials(self, tmp_path):
        creds = _credentials()
        creds.get_credentials.return_value = ("", "")
        apple = FakeApple()
        with pytest.raises(InvalidCredentialsError):
            await _authenticator(tmp_path, apple, creds).ensure_session()
        assert apple.requests == []


# ---------------------------------------------------------------------------
# Session reuse
# ---------------------------------------------------------------------------


def _save_session(tmp_path, **overrides) -> Session:
    session = Session(
        ck_base_url=CK_URL,
        session_token="saved-tok",
        trust_token="saved-trust",
        cookies=[Cookie(name="X-APPLE-WEBAUTH-TOKEN", value='"v=2:t=x"', domain=".icloud.com")],
        created_at="2024-01-01T00:00:00+00:00",
    )
    session = session.model_copy(update=overrides)
    SessionStore(tmp_path / "session.json").save(session)
    return session


class TestSessionReuse:
    @pytest.mark.asyncio
    async def test_probe_success_reuses_session(self, tmp_path):
        saved = _save_session(tmp_path)
        apple = FakeApple()
        creds = _credentials()

        session = await _authenticator(tmp_path, apple, creds).ensure_session()

        assert session == saved
        assert apple.paths() == [
            "/database/1/com.apple.reminders/production/private/zones/list"
        ]
        assert apple.requests[0].headers["Cookie"] == "X-APPLE-WEBAUTH-TOKEN=v=2:t=x"
        creds.get_credentials.assert_not_called()

    @pytest.mark.asyncio
    async def test_probe_failure_refreshes_once(self, tmp_path):
        _save_session(tmp_path)
        apple = FakeApple(probe_status=421)
        creds = _credentials()

        session = await _authenticator(tmp_path, apple, creds).ensure_session()

        assert apple.count("/accountLogin") == 1
        assert apple.count("/signin/init") == 0
        assert _body(apple.find("/accountLogin"))["dsWebAuthToken"] == "saved-tok"
        assert session.dsid == "123456"
        assert session.created_at != "2024-01-01T00:00:00+00:00"
        assert SessionStore(tmp_path / "session.json").load() == session
        creds.get_credentials.assert_not_called()

    @pytest.mark.asyncio
    async def test_refresh_uses_cookie_token(self, tmp_path):
        _save_session(
            tmp_path,
            session_token="",
            cookies=[
                Cookie(name="X-APPLE-DS-WEB-SESSION-TOKEN", value='"cookie-tok"', domain=".icloud.com")
            ],
        )
        apple = FakeApple(probe_status=401)

        await _authenticator(tmp_path, apple).ensure_session()

        assert _body(apple.find("/accountLogin"))["dsWebAuthToken"] == "cookie-tok"

    @pytest.mark.asyncio
    async def test_failed_refresh_falls_back_to_full_auth(self, tmp_path):
        _save_session(tmp_path)
        apple = FakeApple(probe_status=421, login_status=421)

        with pytest.raises(APIError):
            await _authenticator(tmp_path, apple).ensure_session()

        # one refresh attempt, then the full sign-in reaches accountLogin again
        assert apple.count("/accountLogin") == 2
        assert apple.count("/signin/init") == 1
        assert _body(apple.find("/signin/complete"))["trustTokens"] == ["saved-trust"]

    @pytest.mark.asyncio
    async def test_force_reauth_skips_probe(self, tmp_path):
        _save_session(tmp_path)
        apple = FakeApple()

        await _authenticator(tmp_path, apple).ensure_session(force_reauth=True)

        assert apple.count("/zones/list") == 0
        assert apple.count("/signin/init") == 1
