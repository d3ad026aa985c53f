"""Moving cookies between a Session and an httpx cookie jar.

Apple sends several cookies with RFC 2109 quoted-string values
(``"v=1:t=..."``). The outer quotes are stripped when cookies are loaded
into a jar, and cookies saved without a domain are attached to every
Apple/iCloud host explicitly so they reach the CloudKit subdomain too.
"""

from __future__ import annotations

import http.cookiejar
from urllib.parse import urlparse

import httpx

from reminders_cli.auth.session import Cookie

AUTH_HOSTS = (
    "idmsa.apple.com",
    "appleid.apple.com",
    "www.icloud.com",
    "setup.icloud.com",
    "www.apple.com",
)

SESSION_TOKEN_COOKIE = "X-APPLE-DS-WEB-SESSION-TOKEN"


def unquote_cookie_value(value: str) -> str:
    """Strip RFC 2109 outer double quotes from a cookie value."""
    if len(value) >= 2 and value[0] == '"' and value[-1] == '"':
        return value[1:-1]
    return value


def cookie_hosts(ck_base_url: str = "") -> list[str]:
    """Hosts that saved cookies are attached to."""
    hosts = list(AUTH_HOSTS)
    if ck_base_url:
        host = urlparse(ck_base_url).hostname
        if host and host not in hosts:
            hosts.append(host)
    return hosts


def _make_cookie(cookie: Cookie, domain: str) -> http.cookiejar.Cookie:
    domain_specified = domain.startswith(".")
    return http.cookiejar.Cookie(
        version=0,
        name=cookie.name,
        value=unquote_cookie_value(cookie.value),
        port=None,
        port_specified=False,
        domain=domain,
        domain_specified=domain_specified,
        domain_initial_dot=domain_specified,
        path=cookie.path or "/",
        path_specified=True,
        secure=cookie.secure,
        expires=cookie.expires or None,
        discard=not cookie.expires,
        comment=None,
        comment_url=None,
        rest={},
    )


def restore_cookies(
    jar: httpx.Cookies, cookies: list[Cookie], ck_base_url: str = ""
) -> None:
    """Load saved cookies into ``jar``."""
    hosts = cookie_hosts(ck_base_url)
    for cookie in cookies:
        if cookie.domain:
            jar.jar.set_cookie(_make_cookie(cookie, cookie.domain))
            continue
        for host in hosts:
            jar.jar.set_cookie(_make_cookie(cookie, host))


def extract_cookies(jar: httpx.Cookies) -> list[Cookie]:
    """Snapshot the jar, deduplicated by (name, domain, path)."""
    seen: set[tuple[str, str, str]] = set()
    result: list[Cookie] = []
    for c in jar.jar:
        key = (c.name, c.domain, c.path)
        if key in seen:
            continue
        seen.add(key)
        result.append(
            Cookie(
                name=c.name,
                value=c.value or "",
                domain=c.domain,
                path=c.path,
                expires=int(c.expires or 0),
                secure=bool(c.secure),
            )
        )
    return result


def session_token_from_cookies(jar: httpx.Cookies) -> str:
    """Recover the web session token from the jar, if present."""
    for c in jar.jar:
        if c.name == SESSION_TOKEN_COOKIE and c.value:
            return unquote_cookie_value(c.value)
    return ""
