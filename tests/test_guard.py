from __future__ import annotations

import asyncio

import httpx
import pytest

from conftest import FakeBackend
from keybag.core.models import AuthState


@pytest.mark.asyncio
async def test_valid_session_is_authenticated(make_session, backend):
    async with make_session() as session:
        guard = session.guard()
        assert guard.state is AuthState.LOADING
        assert guard.is_authenticated is None

        state = await guard.check()

    assert state is AuthState.AUTHENTICATED
    assert guard.is_authenticated is True
    assert session.navigator.history == []
    check = backend.calls("/account/check-auth")[0]
    assert check.headers["Authorization"] == "Bearer T1"


@pytest.mark.asyncio
async def test_missing_token_redirects_to_login(make_session):
    backend = FakeBackend(token_results=[500])
    async with make_session(backend=backend) as session:
        guard = session.guard()
        state = await guard.check()

    assert state is AuthState.UNAUTHENTICATED
    assert guard.is_authenticated is False
    assert session.navigator.history == ["/login"]
    assert backend.calls("/account/check-auth") == []


@pytest.mark.asyncio
async def test_failed_check_redirects_to_login(make_session, backend):
    backend.live_token = "SOMETHING-ELSE"
    async with make_session() as session:
        state = await session.guard().check()

    assert state is AuthState.UNAUTHENTICATED
    assert session.navigator.history == ["/login"]


@pytest.mark.asyncio
async def test_deactivated_guard_ignores_late_result(make_session, backend):
    backend.check_gate = asyncio.Event()
    backend.live_token = "SOMETHING-ELSE"
    async with make_session() as session:
        guard = session.guard()
        task = guard.activate()
        while not backend.calls("/account/check-auth"):
            await asyncio.sleep(0)
        guard.deactivate()
        backend.check_gate.set()
        await task

    assert guard.state is AuthState.LOADING
    assert session.navigator.history == []


@pytest.mark.asyncio
async def test_activate_is_idempotent_while_running(make_session, backend):
    async with make_session() as session:
        guard = session.guard()
        first = guard.activate()
        second = guard.activate()
        assert first is second
        assert await guard.wait() is AuthState.AUTHENTICATED


@pytest.mark.asyncio
async def test_guard_recovers_through_refresh(make_session):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        if request.url.path == "/auth/get-token":
            return httpx.Response(200, json={"token": "T1"})
        if request.url.path == "/auth/refresh-token":
            return httpx.Response(200, json={"token": "T2"})
        if request.headers.get("Authorization") == "Bearer T2":
            return httpx.Response(200, json={"authenticated": True})
        return httpx.Response(498)

    async with make_session(backend=handler) as session:
        state = await session.guard().check()

    assert state is AuthState.AUTHENTICATED
    assert calls.count("/auth/refresh-token") == 1


@pytest.mark.asyncio
async def test_reactivated_guard_reports_outcome(make_session, backend):
    backend.check_gate = asyncio.Event()
    async with make_session() as session:
        guard = session.guard()
        first = guard.activate()
        while not backend.calls("/account/check-auth"):
            await asyncio.sleep(0)

        guard.deactivate()
        assert guard.activate() is first
        assert guard.active is True

        backend.check_gate.set()
        state = await guard.wait()

    assert state is AuthState.AUTHENTICATED
    assert guard.is_authenticated is True
