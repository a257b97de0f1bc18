"""Logging helpers with consistent formatting and credential redaction."""

from __future__ import annotations

import logging
import re
import sys
from typing import Optional

from rich.logging import RichHandler

from keybag.utils.env import get_bool_env


_BEARER_RE = re.compile(r"(Bearer\s+)([^\s'\",;]+)", re.IGNORECASE)


class CredentialRedactionFilter(logging.Filter):
    """Masks bearer tokens that end up in log messages, e.g. via echoed headers."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = _BEARER_RE.sub(lambda match: match.group(1) + mask_token(match.group(2)), message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def get_logger(name: str, level: int = logging.INFO, *, rich: Optional[bool] = None) -> logging.Logger:
    """Configure and return a logger."""
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    if rich is None:
        rich = not get_bool_env("KEYBAG_PLAIN_LOGS")

    logger.setLevel(level)

    if rich:
        handler: logging.Handler = RichHandler(
            level=level,
            markup=False,
            rich_tracebacks=True,
            tracebacks_show_locals=False,
            show_time=True,
            show_path=False,
        )
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(level)

    formatter = logging.Formatter(
        "%(asctime)s %(name)s %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(formatter)
    handler.addFilter(CredentialRedactionFilter())

    logger.addHandler(handler)
    logger.propagate = False
    return logger


def mask_token(token: Optional[str], *, visible: int = 4) -> str:
    """Return a log-safe rendering of a credential."""
    if not token:
        return "<none>"
    if len(token) <= visible * 2:
        return "*" * len(token)
    return f"{token[:visible]}...{token[-visible:]}"
