"""In-memory credential cache for one client session."""

from __future__ import annotations

from typing import Dict, Optional
from urllib.parse import unquote

import httpx

from keybag.utils.logging import get_logger, mask_token


logger = get_logger("CredentialStore")


def parse_cookie_header(header: str) -> Dict[str, str]:
    """Split a browser style ``a=1; b=2`` cookie string into a mapping."""
    cookies: Dict[str, str] = {}
    for chunk in header.split(";"):
        name, sep, value = chunk.strip().partition("=")
        if not sep or not name:
            continue
        cookies[name] = value
    return cookies


class CredentialStore:
    """Caches the CSRF token (cookie sourced) and the auth token (backend sourced).

    Nothing here is persisted; the cache lives exactly as long as the owning
    session. The CSRF value is read from the cookie jar at most once and the
    auth token is only ever written by the token fetcher and the refresh
    coordinator.
    """

    def __init__(self, cookies: httpx.Cookies, *, csrf_cookie_name: str = "XSRF-TOKEN") -> None:
        self._cookies = cookies
        self._csrf_cookie_name = csrf_cookie_name
        self._csrf_token: Optional[str] = None
        self._auth_token: Optional[str] = None

    @property
    def csrf_cookie_name(self) -> str:
        return self._csrf_cookie_name

    @property
    def auth_token(self) -> Optional[str]:
        return self._auth_token

    def set_auth_token(self, token: str) -> None:
        self._auth_token = token

    def get_csrf_token(self) -> Optional[str]:
        if self._csrf_token:
            logger.debug("Returning cached CSRF token %s", mask_token(self._csrf_token))
            return self._csrf_token

        token = self._read_cookie()
        if token:
            self._csrf_token = token
            logger.debug("Extracted CSRF token %s from cookies", mask_token(token))
            return token

        logger.error("CSRF token not found in cookies (%s)", self._csrf_cookie_name)
        return None

    def _read_cookie(self) -> Optional[str]:
        # Cookies.get() raises CookieConflict on duplicate names; take the first match.
        for cookie in self._cookies.jar:
            if cookie.name == self._csrf_cookie_name and cookie.value:
                return unquote(cookie.value)
        return None
