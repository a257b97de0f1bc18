"""CLI entrypoint to validate a session against the backend."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from keybag.core.models import AuthState
from keybag.core.session import KeybagSession
from keybag.core.settings import ClientSettings
from keybag.utils.logging import get_logger


logger = get_logger("KeybagCLI")


def _load_settings(config: Path | None, base_url: str | None) -> ClientSettings:
    if config is not None:
        if not config.exists():
            raise SystemExit(f"Config file not found: {config}")
        settings = ClientSettings.from_file(config)
    else:
        settings = ClientSettings.from_env()
    return settings.with_base_url(base_url)


async def main() -> int:
    parser = argparse.ArgumentParser(description="Check whether the current cookies hold a valid session.")
    parser.add_argument("--config", type=Path, default=None, help="Path to client settings YAML")
    parser.add_argument("--base-url", default=None, help="Backend base URL (overrides config and environment)")
    parser.add_argument("--cookie", default="", help='Browser style cookie string, e.g. "XSRF-TOKEN=abc; sid=..."')
    args = parser.parse_args()

    settings = _load_settings(args.config, args.base_url)
    logger.info("Checking session against %s", settings.base_url_str)

    async with KeybagSession(settings, cookies=args.cookie or None) as session:
        state = await session.guard().check()

    if state is AuthState.AUTHENTICATED:
        logger.info("Session is authenticated")
        return 0
    logger.error("Session is not authenticated; login required")
    return 1


if __name__ == "__main__":
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
