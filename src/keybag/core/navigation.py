"""Navigation side effects requested by the session layer."""

from __future__ import annotations

from typing import List, Protocol

from keybag.utils.logging import get_logger


class Navigator(Protocol):
    """Receives hard navigations such as the redirect to the login view."""

    def redirect(self, path: str) -> None:
        ...


class NavigationHistory:
    """Default navigator: records every redirect and logs it."""

    def __init__(self) -> None:
        self.logger = get_logger("Navigation")
        self._history: List[str] = []

    def redirect(self, path: str) -> None:
        self.logger.warning("Redirecting to %s", path)
        self._history.append(path)

    @property
    def history(self) -> List[str]:
        return list(self._history)

    @property
    def current(self) -> str | None:
        return self._history[-1] if self._history else None
