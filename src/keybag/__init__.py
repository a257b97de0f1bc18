"""Keybag client session and token management."""

from keybag.core.session import KeybagSession
from keybag.core.settings import ClientSettings

__all__ = ["ClientSettings", "KeybagSession", "__version__"]

__version__ = "0.1.0"
