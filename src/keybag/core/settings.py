"""Client settings loader."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional

import yaml
from pydantic import BaseModel, Field, HttpUrl, ValidationError

from keybag.utils.env import get_float_env, get_str_env


DEFAULT_BASE_URL = "http://localhost:3000"
BASE_URL_ENV = ("KEYBAG_BACKEND_URL", "REACT_APP_BACKEND_URL")


class ClientSettings(BaseModel):
    """Backend endpoints and token policy for one client session."""

    base_url: HttpUrl = Field(default=DEFAULT_BASE_URL, validate_default=True)
    timeout_seconds: float = Field(default=5.0, gt=0)
    csrf_cookie_name: str = "XSRF-TOKEN"
    csrf_header_name: str = "X-CSRF-Token"
    token_endpoint: str = "/auth/get-token"
    refresh_endpoint: str = "/auth/refresh-token"
    check_endpoint: str = "/account/check-auth"
    login_path: str = "/login"
    expired_status: int = 498
    token_fetch_attempts: int = Field(default=2, ge=1)
    token_retry_delay_ms: int = Field(default=1000, ge=0)
    default_headers: Dict[str, str] = Field(default_factory=lambda: {"Content-Type": "application/json"})

    @property
    def base_url_str(self) -> str:
        return str(self.base_url).rstrip("/")

    @classmethod
    def from_env(cls, **overrides) -> "ClientSettings":
        data: Dict[str, object] = {}
        base_url = get_str_env(*BASE_URL_ENV)
        if base_url:
            data["base_url"] = base_url
        timeout = get_float_env("KEYBAG_TIMEOUT_SECONDS")
        if timeout is not None:
            data["timeout_seconds"] = timeout
        data.update(overrides)
        return cls._validate(data)

    @classmethod
    def from_file(cls, path: Path) -> "ClientSettings":
        data = yaml.safe_load(path.read_text()) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Invalid client settings in {path}: expected a mapping")
        if "base_url" not in data:
            base_url = get_str_env(*BASE_URL_ENV)
            if base_url:
                data["base_url"] = base_url
        return cls._validate(data)

    @classmethod
    def _validate(cls, data: Dict[str, object]) -> "ClientSettings":
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ValueError(f"Invalid client settings: {exc}") from exc

    def with_base_url(self, base_url: Optional[str]) -> "ClientSettings":
        if not base_url:
            return self
        return self._validate(self.model_dump(mode="json") | {"base_url": base_url})
