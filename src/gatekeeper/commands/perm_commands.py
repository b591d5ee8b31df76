"""Permission slash commands — /perm group (edit, list)."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from gatekeeper.models import (
    InvalidTargetError,
    TargetKind,
    UnknownGroupError,
    UnknownPermissionError,
)
from gatekeeper.permissions.target import (
    group_key,
    parse_target,
    resolve_target,
    split_permissions,
)

if TYPE_CHECKING:
    from typing import Any

    from gatekeeper.i18n import Translator
    from gatekeeper.permissions.manager import PermissionManager

logger = logging.getLogger("gatekeeper.commands.perm")

PLATFORM = "discord"
# Discord rejects message content over 2000 chars
_MESSAGE_LIMIT = 2000


def interaction_locale(interaction: discord.Interaction) -> str | None:
    """Return the interaction's locale tag (e.g. ``zh-CN``), if any."""
    locale = getattr(interaction, "locale", None)
    value = getattr(locale, "value", locale)
    return value if isinstance(value, str) else None


def chunk_lines(content: str, limit: int = _MESSAGE_LIMIT) -> list[str]:
    """Split *content* on line boundaries into messages of at most *limit* chars.

    A single line longer than *limit* is split mid-line. Always returns at
    least one chunk.
    """
    chunks: list[str] = []
    current = ""
    for line in content.split("\n"):
        while len(line) > limit:
            if current:
                chunks.append(current)
                current = ""
            chunks.append(line[:limit])
            line = line[limit:]
        candidate = f"{current}\n{line}" if current else line
        if len(candidate) > limit:
            chunks.append(current)
            current = line
        else:
            current = candidate
    if current or not chunks:
        chunks.append(current)
    return chunks


class PermCog(commands.Cog):
    """Cog for granting and revoking permissions on users, channels and groups."""

    def __init__(self, bot: commands.Bot) -> None:
        self.bot = bot

    perm_group = app_commands.Group(
        name="perm",
        description="View and edit permissions",
        default_permissions=discord.Permissions(manage_guild=True),
    )

    @property
    def manager(self) -> PermissionManager:
        return self.bot.permission_manager  # type: ignore[attr-defined, no-any-return]

    @property
    def translator(self) -> Translator:
        return self.bot.translator  # type: ignore[attr-defined, no-any-return]

    async def cog_load(self) -> None:
        await self.manager.restore_groups()

    def _text(self, interaction: discord.Interaction, key: str, **params: Any) -> str:
        return self.translator.text(
            f"commands.perm.{key}", interaction_locale(interaction), **params
        )

    async def _reply(self, interaction: discord.Interaction, content: str) -> None:
        first, *rest = chunk_lines(content)
        await interaction.response.send_message(first, ephemeral=True)
        for chunk in rest:
            await interaction.followup.send(chunk, ephemeral=True)

    @perm_group.command(name="edit", description="Show or change the permissions of a target")
    @app_commands.describe(
        perms="Space-separated permission names; prefix with ~ to remove",
        user="Target a user",
        current_user="Target yourself",
        channel="Target a channel",
        current_channel="Target this channel",
        group="Target a permission group",
        delete="Delete the group (with group and no perms)",
    )
    async def perm_edit(
        self,
        interaction: discord.Interaction,
        perms: str | None = None,
        user: discord.User | None = None,
        current_user: bool = False,
        channel: discord.TextChannel | None = None,
        current_channel: bool = False,
        group: str | None = None,
        delete: bool = False,
    ) -> None:
        names = perms.split() if perms else []

        if delete and group and not names:
            try:
                await self.manager.delete_group(group)
            except UnknownGroupError as exc:
                msg = self._text(interaction, "unknown-group", group=exc.args[0])
                await self._reply(interaction, msg)
                return
            except InvalidTargetError:
                msg = self._text(interaction, "invalid-target", target=group)
                await self._reply(interaction, msg)
                return
            key = group_key(group)
            logger.info("Group %s deleted by %s", key, interaction.user)
            await self._reply(interaction, self._text(interaction, "deleted", group=key))
            return

        try:
            target = resolve_target(
                platform=PLATFORM,
                user_id=str(interaction.user.id),
                channel_id=str(interaction.channel_id) if interaction.channel_id else None,
                user=str(user.id) if user is not None else None,
                current_user=current_user,
                channel=str(channel.id) if channel is not None else None,
                current_channel=current_channel,
                group=group,
            )
        except InvalidTargetError:
            await self._reply(interaction, self._text(interaction, "invalid-target", target=group))
            return

        if target is None:
            await self._reply(interaction, self._text(interaction, "help"))
            return

        if names:
            to_set, to_unset = split_permissions(names)
            try:
                ok = await self.manager.modify_permissions(target, to_set, to_unset)
            except UnknownPermissionError as exc:
                await self._reply(
                    interaction,
                    self._text(interaction, "unknown-permission", names=", ".join(exc.names)),
                )
                return
            key = "success" if ok else "failure"
            await self._reply(interaction, self._text(interaction, key))
            return

        permissions = await self.manager.list_permissions(target)
        if permissions is None and parse_target(target).kind is TargetKind.GROUP:
            msg = self._text(interaction, "unknown-group", group=target)
        elif not permissions:
            msg = self._text(interaction, "no-permissions", target=target)
        else:
            lines = "\n".join(f"- `{p}`" for p in permissions)
            msg = self._text(interaction, "permissions", target=target, permissions=lines)
        await self._reply(interaction, msg)

    @perm_group.command(name="list", description="List every registered permission name")
    async def perm_list(self, interaction: discord.Interaction) -> None:
        names = self.manager.registry.list()
        if not names:
            await self._reply(interaction, self._text(interaction, "list.empty"))
            return
        await self._reply(interaction, "\n".join(names))


async def setup(bot: commands.Bot) -> None:
    """Entry point for cog loading."""
    await bot.add_cog(PermCog(bot))
