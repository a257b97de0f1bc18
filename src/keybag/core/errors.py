"""Exceptions raised by the session layer."""

from __future__ import annotations


class KeybagError(RuntimeError):
    """Base class for session layer failures."""


class TokenFetchError(KeybagError):
    """The token endpoint did not hand out a usable token."""


class RefreshError(KeybagError):
    """The refresh endpoint did not hand out a usable token."""
