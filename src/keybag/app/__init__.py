"""Consumer-facing session gate."""

from .guard import SessionGuard

__all__ = ["SessionGuard"]
