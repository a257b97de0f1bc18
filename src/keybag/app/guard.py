"""Consumer-facing gate that validates the current session."""

from __future__ import annotations

import asyncio
from typing import Optional

import httpx
from pydantic import ValidationError

from keybag.core.models import AuthState, TokenResponse
from keybag.core.navigation import Navigator
from keybag.services.http_client import HttpClient
from keybag.services.request_auth import bearer
from keybag.utils.logging import get_logger


class SessionGuard:
    """Tri-state session check with a redirect to the login view on failure.

    ``activate`` mirrors mounting a protected view and ``deactivate`` mirrors
    unmounting it: once deactivated the guard ignores whatever the pending
    check produces.
    """

    def __init__(
        self,
        http: HttpClient,
        *,
        navigator: Navigator,
        token_endpoint: str = "/auth/get-token",
        check_endpoint: str = "/account/check-auth",
        login_path: str = "/login",
    ) -> None:
        self._http = http
        self._navigator = navigator
        self._token_endpoint = token_endpoint
        self._check_endpoint = check_endpoint
        self._login_path = login_path
        self.logger = get_logger("SessionGuard")
        self._state = AuthState.LOADING
        self._active = False
        self._task: Optional[asyncio.Task[None]] = None

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def is_authenticated(self) -> Optional[bool]:
        """``None`` while loading, then True/False."""
        if self._state is AuthState.LOADING:
            return None
        return self._state is AuthState.AUTHENTICATED

    @property
    def active(self) -> bool:
        return self._active

    def activate(self) -> "asyncio.Task[None]":
        self._active = True
        if self._task and not self._task.done():
            return self._task
        self._task = asyncio.create_task(self._check(), name="session-guard-check")
        return self._task

    def deactivate(self) -> None:
        self._active = False

    async def wait(self) -> AuthState:
        if self._task:
            await self._task
        return self._state

    async def check(self) -> AuthState:
        """Activate and wait for the outcome."""
        self.activate()
        return await self.wait()

    async def _check(self) -> None:
        try:
            token = await self._fetch_token()
            if not token:
                self.logger.error("Access denied: token not found")
                self._deny()
                return

            await self._http.get(
                self._check_endpoint,
                headers={"Authorization": bearer(token)},
            )
        except Exception as exc:
            self.logger.error("Access denied: you are not logged in (%s)", exc)
            self._deny()
            return

        if self._active:
            self._state = AuthState.AUTHENTICATED

    async def _fetch_token(self) -> Optional[str]:
        try:
            response = await self._http.get(self._token_endpoint)
            return TokenResponse.model_validate(response.json()).token
        except (httpx.HTTPError, ValueError, ValidationError) as exc:
            self.logger.error("Error fetching token: %s", exc)
            return None

    def _deny(self) -> None:
        if not self._active:
            return
        self._state = AuthState.UNAUTHENTICATED
        self._navigator.redirect(self._login_path)
