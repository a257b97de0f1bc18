"""Request decorator attaching CSRF and bearer credentials."""

from __future__ import annotations

from keybag.data.credential_store import CredentialStore
from keybag.services.http_client import RequestConfig
from keybag.services.token_fetcher import TokenFetcher
from keybag.utils.logging import get_logger


logger = get_logger("RequestAuth")


def bearer(token: str) -> str:
    return f"Bearer {token}"


class AuthHeaderDecorator:
    """Adds ``X-CSRF-Token`` and ``Authorization`` to every outbound request.

    Missing credentials are tolerated and the header is simply left off. An
    ``Authorization`` header already present on the request is kept as is.
    """

    def __init__(
        self,
        credentials: CredentialStore,
        token_fetcher: TokenFetcher,
        *,
        csrf_header_name: str = "X-CSRF-Token",
    ) -> None:
        self._credentials = credentials
        self._token_fetcher = token_fetcher
        self._csrf_header_name = csrf_header_name

    async def before_send(self, config: RequestConfig) -> RequestConfig:
        try:
            csrf_token = self._credentials.get_csrf_token()
            auth_token = await self._token_fetcher.get_auth_token()
        except Exception as exc:
            logger.error("Error in request decorator for %s %s: %s", config.method, config.url, exc)
            raise

        if csrf_token:
            config.headers[self._csrf_header_name] = csrf_token
        if auth_token:
            config.headers.setdefault("Authorization", bearer(auth_token))
        return config
