"""Data models shared across the client."""

from __future__ import annotations

import enum

from pydantic import BaseModel, Field


class TokenResponse(BaseModel):
    """Body returned by both the get-token and refresh-token endpoints."""

    token: str = Field(min_length=1)


class AuthState(str, enum.Enum):
    LOADING = "loading"
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"


class RefreshPhase(enum.Enum):
    IDLE = "idle"
    REFRESHING = "refreshing"
