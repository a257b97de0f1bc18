"""Core session primitives for the Keybag client."""

from .errors import KeybagError, RefreshError, TokenFetchError
from .models import AuthState, RefreshPhase, TokenResponse
from .navigation import NavigationHistory, Navigator
from .settings import ClientSettings

__all__ = [
    "AuthState",
    "ClientSettings",
    "KeybagError",
    "NavigationHistory",
    "Navigator",
    "RefreshError",
    "RefreshPhase",
    "TokenFetchError",
    "TokenResponse",
]
