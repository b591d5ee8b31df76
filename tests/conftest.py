"""Shared test fixtures for Gatekeeper."""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator
    from pathlib import Path

from gatekeeper.config import BotConfig
from gatekeeper.i18n import Translator
from gatekeeper.permissions.manager import PermissionManager
from gatekeeper.permissions.registry import PermissionRegistry
from gatekeeper.storage.db import Database


@pytest.fixture
def tmp_gatekeeper_home(tmp_path: Path) -> Path:
    """Create a temporary ~/.gatekeeper/ structure."""
    home = tmp_path / "gatekeeper"
    home.mkdir()
    (home / "db").mkdir()
    return home


@pytest.fixture
def tmp_env(monkeypatch: pytest.MonkeyPatch, tmp_gatekeeper_home: Path) -> BotConfig:
    """Set environment variables for config tests and return the expected config."""
    monkeypatch.setenv("DISCORD_TOKEN", "test-token-123")
    monkeypatch.setenv("GATEKEEPER_HOME", str(tmp_gatekeeper_home))
    monkeypatch.setenv("DEV_GUILD_ID", "999888777")
    monkeypatch.setenv("GATEKEEPER_LOCALE", "zh")
    return BotConfig(
        discord_token="test-token-123",
        gatekeeper_home=tmp_gatekeeper_home,
        dev_guild_id=999888777,
        default_locale="zh",
    )


@pytest.fixture
async def db(tmp_path: Path) -> AsyncGenerator[Database, None]:
    """Create a temporary initialized Database."""
    database = Database(tmp_path / "db" / "gatekeeper.db")
    await database.init()
    yield database
    await database.close()


@pytest.fixture
def registry() -> PermissionRegistry:
    """Registry pre-populated with a few known permission names."""
    reg = PermissionRegistry()
    for name in ("command.echo", "command.ban", "command.kick", "admin.view"):
        reg.define(name)
    return reg


@pytest.fixture
def manager(db: Database, registry: PermissionRegistry) -> PermissionManager:
    return PermissionManager(db, registry)


@pytest.fixture
def translator() -> Translator:
    return Translator.from_directory()


@pytest.fixture
def mock_bot(
    tmp_gatekeeper_home: Path, manager: PermissionManager, translator: Translator
) -> MagicMock:
    """Mock bot carrying real permission services."""
    bot = MagicMock()
    bot.config = BotConfig(discord_token="test-token", gatekeeper_home=tmp_gatekeeper_home)
    bot.permission_manager = manager
    bot.permission_registry = manager.registry
    bot.translator = translator
    bot.tree = MagicMock()
    bot.tree.sync = AsyncMock()
    return bot


@pytest.fixture
def interaction() -> MagicMock:
    """Mock interaction from user 111222333 in channel 987654321."""
    inter = MagicMock(spec=discord.Interaction)
    inter.response = AsyncMock()
    inter.followup = AsyncMock()
    inter.guild_id = 123456789
    inter.channel_id = 987654321
    inter.locale = discord.Locale.american_english
    inter.user = MagicMock()
    inter.user.id = 111222333
    inter.user.name = "testuser"
    return inter
