"""Single-flight token refresh for expired-session responses."""

from __future__ import annotations

import asyncio
from typing import List, Optional

import httpx

from keybag.core.errors import RefreshError, TokenFetchError
from keybag.core.models import RefreshPhase
from keybag.core.navigation import Navigator
from keybag.data.credential_store import CredentialStore
from keybag.services.http_client import HttpClient, RequestConfig
from keybag.services.request_auth import bearer
from keybag.services.token_fetcher import parse_token
from keybag.utils.logging import get_logger, mask_token


class RefreshCoordinator:
    """Response handler that recovers from expired sessions.

    The first expired response starts a refresh; every expired response seen
    while it runs is parked on a FIFO queue of futures. When the refresh
    settles the queue is drained exactly once, in arrival order, either with
    the new token (the parked requests replay with it) or with the triggering
    error. A failed refresh also sends the user to the login view.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        credentials: CredentialStore,
        navigator: Navigator,
        *,
        refresh_endpoint: str = "/auth/refresh-token",
        expired_status: int = 498,
        login_path: str = "/login",
    ) -> None:
        self._client = client
        self._credentials = credentials
        self._navigator = navigator
        self._refresh_endpoint = refresh_endpoint
        self._expired_status = expired_status
        self._login_path = login_path
        self.logger = get_logger("RefreshCoordinator")
        self._phase = RefreshPhase.IDLE
        self._pending: List["asyncio.Future[str]"] = []

    @property
    def phase(self) -> RefreshPhase:
        return self._phase

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def on_response(
        self, client: HttpClient, config: RequestConfig, response: httpx.Response
    ) -> httpx.Response:
        if response.status_code != self._expired_status or config.retried:
            return response

        # No await between this check and the phase flip below.
        if self._phase is RefreshPhase.REFRESHING:
            waiter: "asyncio.Future[str]" = asyncio.get_running_loop().create_future()
            self._pending.append(waiter)
            self.logger.debug("Refresh in flight; queued %s %s", config.method, config.url)
            token = await waiter
            return await self._replay(client, config, token)

        config.retried = True
        self._phase = RefreshPhase.REFRESHING
        try:
            token = await self._refresh()
            self._credentials.set_auth_token(token)
            client.set_default_header("Authorization", bearer(token))
            self.logger.info("Session refreshed with token %s", mask_token(token))
            self._process_queue(token=token)
        except Exception as exc:
            error = _expired_error(response)
            self._process_queue(error=error)
            self.logger.error("Token refresh failed: %s", exc, exc_info=True)
            self._navigator.redirect(self._login_path)
            raise error from exc
        finally:
            # Reached with waiters still parked only when the refresh was cancelled.
            if self._pending:
                self.logger.warning("Refresh interrupted; rejecting %d queued requests", len(self._pending))
                self._process_queue(error=_expired_error(response))
            self._phase = RefreshPhase.IDLE

        return await self._replay(client, config, token)

    async def _refresh(self) -> str:
        response = await self._client.post(self._refresh_endpoint)
        response.raise_for_status()
        try:
            return parse_token(response)
        except TokenFetchError as exc:
            raise RefreshError("Refresh endpoint returned no token") from exc

    def _process_queue(self, *, token: Optional[str] = None, error: Optional[BaseException] = None) -> None:
        pending, self._pending = self._pending, []
        for waiter in pending:
            if waiter.done():
                continue
            if token is not None:
                waiter.set_result(token)
            else:
                waiter.set_exception(error or RefreshError("Token refresh failed"))

    async def _replay(self, client: HttpClient, config: RequestConfig, token: str) -> httpx.Response:
        config.retried = True
        config.headers["Authorization"] = bearer(token)
        return await client.send(config)


def _expired_error(response: httpx.Response) -> httpx.HTTPStatusError:
    return httpx.HTTPStatusError(
        f"Session expired: HTTP {response.status_code} for url '{response.request.url}'",
        request=response.request,
        response=response,
    )
