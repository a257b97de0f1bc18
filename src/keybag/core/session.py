"""Session object owning every piece of per-context credential state."""

from __future__ import annotations

from typing import Mapping, Optional, Union

import httpx

from keybag.app.guard import SessionGuard
from keybag.core.navigation import NavigationHistory, Navigator
from keybag.core.refresh import RefreshCoordinator
from keybag.core.settings import ClientSettings
from keybag.data.credential_store import CredentialStore, parse_cookie_header
from keybag.services.http_client import HttpClient
from keybag.services.request_auth import AuthHeaderDecorator
from keybag.services.token_fetcher import Sleep, TokenFetcher
from keybag.utils.logging import get_logger


CookieSeed = Union[str, Mapping[str, str], httpx.Cookies, None]


class KeybagSession:
    """Wires the credential store, token fetcher and refresh coordinator together.

    One instance corresponds to one client context (what a page load is to a
    browser). Nothing is shared between instances, so two sessions never see
    each other's tokens.
    """

    def __init__(
        self,
        settings: Optional[ClientSettings] = None,
        *,
        cookies: CookieSeed = None,
        navigator: Optional[Navigator] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Optional[Sleep] = None,
    ) -> None:
        self.settings = settings or ClientSettings.from_env()
        self.logger = get_logger("KeybagSession")
        if isinstance(cookies, str):
            cookies = parse_cookie_header(cookies)

        self._transport_client = httpx.AsyncClient(
            base_url=self.settings.base_url_str,
            timeout=self.settings.timeout_seconds,
            cookies=cookies,
            transport=transport,
            follow_redirects=True,
        )
        self.navigator: Navigator = navigator or NavigationHistory()
        self.credentials = CredentialStore(
            self._transport_client.cookies,
            csrf_cookie_name=self.settings.csrf_cookie_name,
        )
        self.token_fetcher = TokenFetcher(
            self._transport_client,
            self.credentials,
            endpoint=self.settings.token_endpoint,
            csrf_header_name=self.settings.csrf_header_name,
            max_attempts=self.settings.token_fetch_attempts,
            retry_delay_ms=self.settings.token_retry_delay_ms,
            sleep=sleep,
        )
        self.refresh = RefreshCoordinator(
            self._transport_client,
            self.credentials,
            self.navigator,
            refresh_endpoint=self.settings.refresh_endpoint,
            expired_status=self.settings.expired_status,
            login_path=self.settings.login_path,
        )
        self.http = HttpClient(
            self._transport_client,
            headers=self.settings.default_headers,
            request_decorators=[
                AuthHeaderDecorator(
                    self.credentials,
                    self.token_fetcher,
                    csrf_header_name=self.settings.csrf_header_name,
                )
            ],
            response_handlers=[self.refresh],
        )
        self.logger.debug("Session created for %s", self.settings.base_url_str)

    def guard(self) -> SessionGuard:
        return SessionGuard(
            self.http,
            navigator=self.navigator,
            token_endpoint=self.settings.token_endpoint,
            check_endpoint=self.settings.check_endpoint,
            login_path=self.settings.login_path,
        )

    async def aclose(self) -> None:
        await self._transport_client.aclose()

    async def __aenter__(self) -> "KeybagSession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
