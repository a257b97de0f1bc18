"""HTTP client wrapper running request/response pipeline stages around each call."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Protocol, Sequence

import httpx


@dataclass(slots=True)
class RequestConfig:
    """Outbound request description; ``retried`` guards against refresh loops."""

    method: str
    url: str
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    params: Optional[Dict[str, Any]] = None
    json: Any = None
    content: Optional[bytes] = None
    retried: bool = False


class RequestDecorator(Protocol):
    """Runs before a request leaves the client."""

    async def before_send(self, config: RequestConfig) -> RequestConfig:
        ...


class ResponseHandler(Protocol):
    """Runs on every response; may return a different (e.g. replayed) response."""

    async def on_response(
        self, client: "HttpClient", config: RequestConfig, response: httpx.Response
    ) -> httpx.Response:
        ...


class HttpClient:
    """Shared HTTP client that decorates requests and post-processes responses.

    Non-2xx responses that survive the response handlers are raised as
    ``httpx.HTTPStatusError``.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        headers: Optional[Mapping[str, str]] = None,
        request_decorators: Sequence[RequestDecorator] = (),
        response_handlers: Sequence[ResponseHandler] = (),
    ) -> None:
        self._client = client
        self.headers: Dict[str, str] = dict(headers or {})
        self._request_decorators = list(request_decorators)
        self._response_handlers = list(response_handlers)

    @property
    def transport_client(self) -> httpx.AsyncClient:
        return self._client

    def add_request_decorator(self, decorator: RequestDecorator) -> None:
        self._request_decorators.append(decorator)

    def add_response_handler(self, handler: ResponseHandler) -> None:
        self._response_handlers.append(handler)

    def set_default_header(self, name: str, value: str) -> None:
        self.headers[name] = value

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: Optional[Mapping[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        content: Optional[bytes] = None,
    ) -> httpx.Response:
        config = RequestConfig(
            method=method.upper(),
            url=url,
            headers=httpx.Headers(headers or {}),
            params=params,
            json=json,
            content=content,
        )
        return await self.send(config)

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("POST", url, **kwargs)

    async def put(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("PUT", url, **kwargs)

    async def delete(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("DELETE", url, **kwargs)

    async def send(self, config: RequestConfig) -> httpx.Response:
        """Run the full pipeline for ``config``; also used to replay requests."""
        for name, value in self.headers.items():
            config.headers.setdefault(name, value)
        for decorator in self._request_decorators:
            config = await decorator.before_send(config)

        request = self._client.build_request(
            config.method,
            config.url,
            headers=config.headers,
            params=config.params,
            json=config.json,
            content=config.content,
        )
        response = await self._client.send(request)

        for handler in self._response_handlers:
            response = await handler.on_response(self, config, response)

        response.raise_for_status()
        return response

    async def aclose(self) -> None:
        await self._client.aclose()
