"""Auth token acquisition with a bounded, fixed-delay retry."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx
from pydantic import ValidationError
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from keybag.core.errors import TokenFetchError
from keybag.core.models import TokenResponse
from keybag.data.credential_store import CredentialStore
from keybag.utils.logging import get_logger, mask_token


logger = get_logger("TokenFetcher")

Sleep = Callable[[float], Awaitable[Any]]


def parse_token(response: httpx.Response) -> str:
    """Return the ``token`` field of a token endpoint response."""
    try:
        return TokenResponse.model_validate(response.json()).token
    except (ValueError, ValidationError) as exc:
        raise TokenFetchError(f"Malformed token response from {response.request.url}") from exc


class TokenFetcher:
    """Fetches the auth token once and serves it from the credential store afterwards."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        credentials: CredentialStore,
        *,
        endpoint: str = "/auth/get-token",
        csrf_header_name: str = "X-CSRF-Token",
        max_attempts: int = 2,
        retry_delay_ms: int = 1000,
        sleep: Optional[Sleep] = None,
    ) -> None:
        self._client = client
        self._credentials = credentials
        self._endpoint = endpoint
        self._csrf_header_name = csrf_header_name
        self._max_attempts = max_attempts
        self._retry_delay_ms = retry_delay_ms
        self._sleep = sleep or asyncio.sleep
        self._lock = asyncio.Lock()

    async def get_auth_token(self, retry_delay_ms: Optional[int] = None) -> Optional[str]:
        """Return the cached token, fetching it first if needed.

        Failures are reported as ``None`` rather than raised: callers treat a
        missing token as "unauthenticated".
        """
        cached = self._credentials.auth_token
        if cached:
            return cached

        async with self._lock:
            # Another caller may have filled the cache while we waited.
            if self._credentials.auth_token:
                return self._credentials.auth_token

            delay_ms = self._retry_delay_ms if retry_delay_ms is None else retry_delay_ms
            csrf_token = self._credentials.get_csrf_token()
            try:
                token = await self._fetch_with_retry(csrf_token, delay_ms)
            except (httpx.HTTPError, TokenFetchError, RetryError) as exc:
                logger.error("Max retries reached. Could not fetch token: %s", exc)
                return None

            self._credentials.set_auth_token(token)
            logger.info("Fetched auth token %s", mask_token(token))
            return token

    async def _fetch_with_retry(self, csrf_token: Optional[str], delay_ms: int) -> str:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_fixed(delay_ms / 1000),
            retry=retry_if_exception_type((httpx.HTTPError, TokenFetchError)),
            before_sleep=self._log_retry,
            sleep=self._sleep,
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await self._fetch_once(csrf_token)
        raise TokenFetchError("Token fetch loop exited without a result")  # pragma: no cover

    async def _fetch_once(self, csrf_token: Optional[str]) -> str:
        headers: Dict[str, str] = {}
        if csrf_token:
            headers[self._csrf_header_name] = csrf_token
        response = await self._client.get(self._endpoint, headers=headers)
        if not response.is_success:
            raise TokenFetchError(f"Failed to fetch token: HTTP {response.status_code}")
        return parse_token(response)

    @staticmethod
    def _log_retry(retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        logger.error("Attempt %d - Error fetching token: %s", retry_state.attempt_number, exc)
        if retry_state.next_action is not None:
            logger.info("Retrying in %.0fms...", retry_state.next_action.sleep * 1000)
