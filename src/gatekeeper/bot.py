"""Discord bot entrypoint for Gatekeeper."""

from __future__ import annotations

import logging
import pkgutil
from typing import Any

import discord
from discord import app_commands
from discord.ext import commands
from dotenv import load_dotenv

import gatekeeper.commands
from gatekeeper.config import BotConfig
from gatekeeper.i18n import Translator
from gatekeeper.permissions.manager import PermissionManager
from gatekeeper.permissions.registry import PermissionRegistry
from gatekeeper.storage.db import Database

logger = logging.getLogger("gatekeeper.bot")

COMMAND_PERMISSION_PREFIX = "command."


def command_permission(
    command: app_commands.Command | app_commands.Group,  # type: ignore[type-arg]
) -> str:
    """Permission name for an application command, e.g. ``command.perm.edit``."""
    return COMMAND_PERMISSION_PREFIX + command.qualified_name.replace(" ", ".")


def publish_command_permissions(
    tree: app_commands.CommandTree, registry: PermissionRegistry  # type: ignore[type-arg]
) -> int:
    """Define a permission per command; subcommands depend on their parent group."""
    count = 0
    for command in tree.walk_commands():
        name = command_permission(command)
        if not registry.is_defined(name):
            registry.define(name)
            count += 1
        if command.parent is not None:
            registry.depend(name, command_permission(command.parent))
    return count


class GatekeeperBot(commands.Bot):
    """Discord bot that manages permission grants for users, channels and groups."""

    def __init__(self, config: BotConfig) -> None:
        self.config = config

        intents = discord.Intents.default()
        intents.guilds = True
        intents.presences = False
        intents.members = False

        super().__init__(
            command_prefix="!",
            intents=intents,
        )

    async def setup_hook(self) -> None:
        """Initialize storage and permission services, load cogs, and register error handler."""
        self.db = Database(self.config.db_path)
        await self.db.init()

        self.translator = Translator.from_directory(default_locale=self.config.default_locale)
        self.permission_registry = PermissionRegistry()
        self.permission_manager = PermissionManager(self.db, self.permission_registry)

        # Auto-discover and load all command cogs
        for module_info in pkgutil.iter_modules(gatekeeper.commands.__path__):
            ext = f"gatekeeper.commands.{module_info.name}"
            try:
                await self.load_extension(ext)
                logger.info("Loaded extension: %s", ext)
            except Exception:
                logger.exception("Failed to load extension: %s", ext)

        # Cogs publish as they are added; this catches commands added straight to the tree
        self.publish_commands()

        # Register tree error handler
        @self.tree.error
        async def on_app_command_error(
            interaction: discord.Interaction,
            error: app_commands.AppCommandError,
        ) -> None:
            if isinstance(error, app_commands.MissingPermissions):
                msg = "You don't have permission to use this command."
            elif isinstance(error, app_commands.CommandNotFound):
                msg = "Command not found."
            elif isinstance(error, app_commands.CommandInvokeError):
                logger.exception("Command error", exc_info=error.original)
                msg = "An internal error occurred."
            else:
                logger.exception("Unhandled app command error", exc_info=error)
                msg = "An unexpected error occurred."
            if not interaction.response.is_done():
                await interaction.response.send_message(msg, ephemeral=True)
            else:
                await interaction.followup.send(msg, ephemeral=True)

    def publish_commands(self) -> int:
        """Publish ``command.*`` names for every command currently in the tree."""
        count = publish_command_permissions(self.tree, self.permission_registry)
        if count:
            logger.info("Published %d command permission(s)", count)
        return count

    async def add_cog(self, cog: commands.Cog, /, **kwargs: Any) -> None:
        """Add *cog* and publish permission names for any commands it brought."""
        await super().add_cog(cog, **kwargs)
        if hasattr(self, "permission_registry"):
            self.publish_commands()

    async def close(self) -> None:
        """Shut down database and disconnect."""
        if hasattr(self, "db"):
            await self.db.close()
        await super().close()

    async def on_ready(self) -> None:
        """Log startup info and sync command tree."""
        assert self.user is not None
        logger.info(
            "Logged in as %s (id=%s) | guilds=%d | cogs=%d",
            self.user.name,
            self.user.id,
            len(self.guilds),
            len(self.cogs),
        )
        if self.config.dev_guild_id:
            guild = discord.Object(id=self.config.dev_guild_id)
            self.tree.copy_global_to(guild=guild)
            await self.tree.sync(guild=guild)
            logger.info("Commands synced to dev guild %s", self.config.dev_guild_id)
        else:
            await self.tree.sync()
            logger.info("Commands synced globally")


def main() -> None:
    """Entry point: load env, build config, run bot."""
    load_dotenv()
    logging.basicConfig(level=logging.INFO)
    config = BotConfig.from_env()
    bot = GatekeeperBot(config)
    bot.run(config.discord_token, log_handler=None)
