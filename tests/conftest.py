from __future__ import annotations

import asyncio
import json
from collections import Counter
from typing import List, Optional, Union

import httpx
import pytest

from keybag.core.session import KeybagSession
from keybag.core.settings import ClientSettings


Result = Union[str, int]


class FakeBackend:
    """Scripted stand-in for the auth backend.

    ``token_results`` / ``refresh_results`` are consumed in order; a string is
    handed out as ``{"token": ...}``, an int is returned as a bare status code.
    The last entry repeats once the list is exhausted.
    """

    def __init__(
        self,
        *,
        token_results: Optional[List[Result]] = None,
        refresh_results: Optional[List[Result]] = None,
        live_token: str = "T1",
    ) -> None:
        self.token_results = list(token_results or ["T1"])
        self.refresh_results = list(refresh_results or ["T2"])
        self.live_token = live_token
        self.requests: List[httpx.Request] = []
        self.hits: Counter[str] = Counter()
        self.expired_responses = 0
        self.expired_target: Optional[int] = None
        self.all_expired = asyncio.Event()
        self.check_gate: Optional[asyncio.Event] = None
        self.refresh_gate: Optional[asyncio.Event] = None
        self.events: List[str] = []

    def calls(self, path: str) -> List[httpx.Request]:
        return [request for request in self.requests if request.url.path == path]

    @staticmethod
    def _next(results: List[Result]) -> Result:
        return results.pop(0) if len(results) > 1 else results[0]

    @staticmethod
    def _token_response(result: Result) -> httpx.Response:
        if isinstance(result, int):
            return httpx.Response(result, json={"message": "failed"})
        return httpx.Response(200, json={"token": result})

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        self.hits[path] += 1

        if path == "/auth/get-token":
            return self._token_response(self._next(self.token_results))

        if path == "/auth/refresh-token":
            if self.expired_target is not None:
                await self.all_expired.wait()
                # let the remaining expired responses reach the client first
                await asyncio.sleep(0.01)
            if self.refresh_gate is not None:
                await self.refresh_gate.wait()
            result = self._next(self.refresh_results)
            if isinstance(result, str):
                self.live_token = result
            self.events.append("refreshed")
            return self._token_response(result)

        if path == "/account/check-auth":
            if self.check_gate is not None:
                await self.check_gate.wait()
            if request.headers.get("Authorization") == f"Bearer {self.live_token}":
                return httpx.Response(200, json={"authenticated": True})
            return httpx.Response(401, json={"message": "unauthorized"})

        if path.startswith("/api/"):
            auth = request.headers.get("Authorization")
            if auth != f"Bearer {self.live_token}":
                self.expired_responses += 1
                if self.expired_target is not None and self.expired_responses >= self.expired_target:
                    self.all_expired.set()
                self.events.append(f"expired:{path}")
                return httpx.Response(498, json={"message": "token expired"})
            self.events.append(f"ok:{path}")
            body = json.loads(request.content) if request.content else None
            return httpx.Response(200, json={"path": path, "auth": auth, "body": body})

        return httpx.Response(404)


class SleepRecorder:
    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def sleeper() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def settings() -> ClientSettings:
    return ClientSettings(base_url="http://localhost:3000")


@pytest.fixture
def make_session(backend, sleeper, settings):
    def _make(cookies="XSRF-TOKEN=abc123", **kwargs) -> KeybagSession:
        return KeybagSession(
            kwargs.pop("settings", settings),
            cookies=cookies,
            transport=httpx.MockTransport(kwargs.pop("backend", backend)),
            sleep=sleeper,
            **kwargs,
        )

    return _make
