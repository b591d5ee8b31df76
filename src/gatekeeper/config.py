"""Bot configuration loaded from environment variables."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger("gatekeeper.config")

DEFAULT_HOME = Path.home() / ".gatekeeper"


@dataclass(frozen=True)
class BotConfig:
    """Immutable bot configuration. Construct via ``from_env()`` or directly for tests."""

    discord_token: str
    gatekeeper_home: Path = field(default_factory=lambda: DEFAULT_HOME)
    dev_guild_id: int | None = None
    default_locale: str = "en"

    @property
    def db_path(self) -> Path:
        return self.gatekeeper_home / "db" / "gatekeeper.db"

    @classmethod
    def from_env(cls) -> BotConfig:
        """Build config from ``os.environ``. Raises ``ValueError`` on missing token."""
        token = os.environ.get("DISCORD_TOKEN", "").strip()
        if not token:
            raise ValueError("DISCORD_TOKEN is required but missing or empty")

        raw_home = os.environ.get("GATEKEEPER_HOME", "")
        home = Path(raw_home).expanduser().resolve() if raw_home else DEFAULT_HOME

        raw_guild = (
            os.environ.get("DEV_GUILD_ID", "").strip()
            or os.environ.get("DISCORD_GUILD_ID", "").strip()
        )
        try:
            dev_guild_id = int(raw_guild) if raw_guild else None
        except ValueError:
            raise ValueError(f"DEV_GUILD_ID must be an integer, got {raw_guild!r}") from None

        locale = os.environ.get("GATEKEEPER_LOCALE", "").strip() or "en"

        config = cls(
            discord_token=token,
            gatekeeper_home=home,
            dev_guild_id=dev_guild_id,
            default_locale=locale,
        )
        logger.info(
            "Config loaded — home=%s, dev_guild=%s, locale=%s", home, dev_guild_id, locale
        )
        return config
