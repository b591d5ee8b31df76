"""Permission manager — edits user, channel and group permission sets.

Group permission sets are also published to the :class:`PermissionRegistry`
under the group's key so the rest of the bot sees the bundle. The manager owns
the disposers for those publications; they live only on the event loop.
Each read-merge-write runs under a per-target lock.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from gatekeeper.models import TargetKind, UnknownGroupError, UnknownPermissionError
from gatekeeper.permissions.target import group_key, parse_target

if TYPE_CHECKING:
    from collections.abc import Callable

    from gatekeeper.models import Target

    from gatekeeper.permissions.registry import PermissionRegistry
    from gatekeeper.storage.db import Database

logger = logging.getLogger("gatekeeper.permissions.manager")


def _merge(current: list[str], to_set: list[str], to_unset: list[str]) -> list[str]:
    permissions = set(current)
    permissions.update(to_set)
    permissions.difference_update(to_unset)
    return sorted(permissions)


class PermissionManager:
    """List and modify the permissions attached to a target key."""

    def __init__(self, db: Database, registry: PermissionRegistry) -> None:
        self._db = db
        self._registry = registry
        self._disposers: dict[str, Callable[[], None]] = {}
        # Interactions run as separate tasks; edits to one key must not interleave
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock_for(self, key: str) -> asyncio.Lock:
        return self._locks.setdefault(key, asyncio.Lock())

    @property
    def registry(self) -> PermissionRegistry:
        return self._registry

    def published_groups(self) -> list[str]:
        """Names of groups currently published to the registry."""
        return sorted(self._disposers)

    async def list_permissions(self, target: str | None) -> list[str] | None:
        """Return the permissions of *target*, or None if it has no record."""
        if not target:
            return None
        parsed = parse_target(target)
        if parsed.kind is TargetKind.USER:
            user = await self._db.get_user(parsed.platform, parsed.ident)
            return user.permissions if user else None
        if parsed.kind is TargetKind.CHANNEL:
            channel = await self._db.get_channel(parsed.platform, parsed.ident)
            return channel.permissions if channel else None
        group = await self._db.get_group(parsed.ident)
        return group.permissions if group else None

    async def modify_permissions(
        self, target: str | None, to_set: list[str], to_unset: list[str]
    ) -> bool:
        """Add *to_set* and remove *to_unset* on *target*, creating its record if needed.

        Raises :exc:`UnknownPermissionError` before touching storage if any name
        in *to_set* is not registered. Returns False for an empty target.
        """
        if not target:
            return False
        unknown = self._registry.unknown(to_set)
        if unknown:
            raise UnknownPermissionError(unknown)

        parsed = parse_target(target)
        async with self._lock_for(parsed.key):
            await self._apply(parsed, to_set, to_unset)

        logger.info(
            "Updated %s: +%s -%s", parsed.key, ",".join(to_set) or "-", ",".join(to_unset) or "-"
        )
        return True

    async def _apply(self, parsed: Target, to_set: list[str], to_unset: list[str]) -> None:
        if parsed.kind is TargetKind.USER:
            user = await self._db.get_user(parsed.platform, parsed.ident)
            if user is None:
                user = await self._db.create_user(parsed.platform, parsed.ident)
            permissions = _merge(user.permissions, to_set, to_unset)
            await self._db.set_user_permissions(user.id, permissions)
        elif parsed.kind is TargetKind.CHANNEL:
            channel = await self._db.get_channel(parsed.platform, parsed.ident)
            if channel is None:
                channel = await self._db.create_channel(parsed.platform, parsed.ident)
            permissions = _merge(channel.permissions, to_set, to_unset)
            await self._db.set_channel_permissions(channel.platform, channel.id, permissions)
        else:
            group = await self._db.get_group(parsed.ident)
            if group is None:
                group = await self._db.create_group(parsed.ident)
            permissions = _merge(group.permissions, to_set, to_unset)
            await self._db.set_group_permissions(group.name, permissions)
            self._publish_group(group.name, permissions)

    async def delete_group(self, name: str) -> None:
        """Remove a group record and withdraw its registry definition.

        Raises :exc:`UnknownGroupError` if no such group is stored.
        """
        key = group_key(name)
        async with self._lock_for(key):
            removed = await self._db.remove_group(key)
            self._withdraw_group(key)
        if not removed:
            raise UnknownGroupError(key)

    async def restore_groups(self) -> int:
        """Publish every stored group to the registry. Returns the count."""
        groups = await self._db.list_groups()
        for group in groups:
            self._publish_group(group.name, group.permissions)
        if groups:
            logger.info("Restored %d permission group(s)", len(groups))
        return len(groups)

    def _publish_group(self, name: str, permissions: list[str]) -> None:
        self._withdraw_group(name)
        self._disposers[name] = self._registry.define(name, permissions)
        logger.info("Published group %s with %d permission(s)", name, len(permissions))

    def _withdraw_group(self, name: str) -> None:
        dispose = self._disposers.pop(name, None)
        if dispose is not None:
            dispose()
